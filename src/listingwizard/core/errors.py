"""Error handling with friendly messages.

Validation failures are not errors: they are reported as ValidationResult
values. Everything raised by listingwizard derives from ListingWizardError.
"""

from __future__ import annotations


class ListingWizardError(Exception):
    """Base exception for all listingwizard errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(ListingWizardError):
    """Configuration error."""

    pass


class WizardError(ListingWizardError):
    """Wizard definition or state error."""

    pass


class StepDefinitionError(WizardError):
    """Step definitions file is missing or malformed."""

    pass


class NavigationError(WizardError):
    """Requested step does not exist."""

    def __init__(self, index: int, total: int) -> None:
        super().__init__(
            f"Step index {index} is out of range (0..{total - 1})",
            "Use one of the indexes listed in the steps sidebar",
        )
        self.index = index


class DraftStoreError(ListingWizardError):
    """Local draft persistence failed."""

    pass


class GatewayError(ListingWizardError):
    """Remote entity backend call failed.

    These are transient from the wizard's point of view: the document is kept
    and the user may retry.
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = "Check your connection and try again",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, suggestion)
        self.status_code = status_code


class EntityNotFoundError(GatewayError):
    """Property record does not exist (or is not visible)."""

    def __init__(self, entity_id: str) -> None:
        super().__init__(
            f"Property '{entity_id}' not found",
            "It may have been deleted or you may not own it",
            status_code=404,
        )
        self.entity_id = entity_id


class PartialWriteError(GatewayError):
    """The property row was written but a follow-up write failed.

    ``entity_id`` is the row that now exists; a retry must update it rather
    than create another one.
    """

    def __init__(self, entity_id: str, message: str) -> None:
        super().__init__(message, "Submit again to finish saving your property")
        self.entity_id = entity_id


class UploadError(ListingWizardError):
    """Object storage upload failed."""

    pass


class AuthError(ListingWizardError):
    """Authentication or authorization failure."""

    recoverable = True


class AuthenticationRequiredError(AuthError):
    """No session and no evidence of a prior one."""

    def __init__(self) -> None:
        super().__init__(
            "Authentication Required",
            "Please sign in to continue creating your property.",
        )


class SessionExpiredError(AuthError):
    """A prior session existed but did not rehydrate in time."""

    def __init__(self) -> None:
        super().__init__(
            "Session Expired",
            "Please sign in again to continue creating your property.",
        )


class AccessDeniedError(AuthError):
    """Session role is not allowed to list properties."""

    recoverable = False

    def __init__(self, role: str | None) -> None:
        super().__init__(
            "Access Denied",
            "Only property owners can create properties.",
        )
        self.role = role
