"""Errors raised by the meal sharing workflow."""


class MealShareError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StoreError(MealShareError):
    """A database query or connection failed."""

    def __init__(
        self, message: str, *, table: str | None = None, detail: str | None = None
    ) -> None:
        super().__init__(message)
        self.table = table
        self.detail = detail


class ConstraintViolationError(StoreError):
    """An insert or update violated a uniqueness constraint."""


class StorageError(MealShareError):
    """An object storage call failed."""


class DuplicateTitleError(MealShareError):
    """A meal with the same slug already exists."""

    def __init__(
        self,
        message: str = (
            "A meal with this title already exists. Please choose a different title."
        ),
    ) -> None:
        super().__init__(message)


class MealPersistenceError(MealShareError):
    """Saving a meal row failed for a reason other than a duplicate title."""


class SlugExhaustedError(MealShareError):
    """No free slug was found within the attempt cap."""


class NotFoundError(MealShareError):
    """The requested meal does not exist."""


class InvalidArgumentError(MealShareError, ValueError):
    """A required argument is missing or malformed."""


class ConfigurationError(MealShareError):
    """Required server configuration is missing."""


class AccessDeniedError(MealShareError):
    """A supplied secret did not match the configured one."""


class ImageProcessingError(MealShareError):
    """An uploaded image could not be decoded or converted."""
