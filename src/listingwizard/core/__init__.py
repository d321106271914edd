"""listingwizard core - config, logging, events, diagnostics and errors."""

from listingwizard.core.config import ConfigResolver, LoggingPolicy, WizardSettings
from listingwizard.core.errors import (
    AccessDeniedError,
    AuthenticationRequiredError,
    AuthError,
    ConfigError,
    DraftStoreError,
    EntityNotFoundError,
    GatewayError,
    ListingWizardError,
    NavigationError,
    PartialWriteError,
    SessionExpiredError,
    StepDefinitionError,
    UploadError,
    WizardError,
)
from listingwizard.core.events import EventBus, get_event_bus
from listingwizard.core.interfaces import (
    AuthProvider,
    EntityGateway,
    Session,
    SessionStatus,
    UploadService,
)
from listingwizard.core.logging import (
    VerbosityLevel,
    apply_logging_policy,
    get_logger,
    get_verbosity,
    set_colors,
    set_verbosity,
)

__all__ = [
    # Config
    "ConfigResolver",
    "LoggingPolicy",
    "WizardSettings",
    # Errors
    "ListingWizardError",
    "ConfigError",
    "WizardError",
    "StepDefinitionError",
    "NavigationError",
    "PartialWriteError",
    "DraftStoreError",
    "GatewayError",
    "EntityNotFoundError",
    "UploadError",
    "AuthError",
    "AuthenticationRequiredError",
    "SessionExpiredError",
    "AccessDeniedError",
    # Events
    "EventBus",
    "get_event_bus",
    # Interfaces
    "AuthProvider",
    "EntityGateway",
    "Session",
    "SessionStatus",
    "UploadService",
    # Logging
    "VerbosityLevel",
    "apply_logging_policy",
    "get_logger",
    "get_verbosity",
    "set_colors",
    "set_verbosity",
]
