"""listingwizard - multi-step property listing wizard.

Guided eight-step editing of a property listing with local drafts,
autosave, session gating and a two-way mapping to the persisted entity.
"""

__version__ = "0.1.0"

from listingwizard.converter import to_persisted_entity, to_wizard_document
from listingwizard.document import WizardDocument
from listingwizard.drafts import DraftRecord, FileDraftStore, InMemoryDraftStore
from listingwizard.photos import PhotoManager, UploadFile, UploadOutcome
from listingwizard.steps import StepController, StepDescriptor, load_step_definitions
from listingwizard.validation import ValidationResult, validate_all, validate_step
from listingwizard.wizard import (
    ExitReason,
    SubmitResult,
    WizardOrchestrator,
    WizardStatus,
    WizardView,
)

__all__ = [
    "__version__",
    # Document
    "WizardDocument",
    "to_persisted_entity",
    "to_wizard_document",
    # Drafts
    "DraftRecord",
    "FileDraftStore",
    "InMemoryDraftStore",
    # Photos
    "PhotoManager",
    "UploadFile",
    "UploadOutcome",
    # Steps / validation
    "StepController",
    "StepDescriptor",
    "load_step_definitions",
    "ValidationResult",
    "validate_all",
    "validate_step",
    # Orchestrator
    "ExitReason",
    "SubmitResult",
    "WizardOrchestrator",
    "WizardStatus",
    "WizardView",
]
