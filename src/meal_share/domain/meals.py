"""Domain models for shared meals."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Meal:
    """A shared meal as stored in the ``meals`` table."""

    title: str
    slug: str
    image: str
    summary: str
    instructions: str
    creator: str
    creator_email: str
    is_deleted: bool = False
    id: int | None = None


@dataclass(frozen=True)
class ImageUpload:
    """Binary image submitted with a meal."""

    content: bytes
    filename: str
    media_type: str
    converted_from_heic: bool = False

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class MealFormData:
    """Raw share-meal submission."""

    title: str
    summary: str
    instructions: str
    creator: str
    creator_email: str
    image: ImageUpload | None = None


@dataclass(frozen=True)
class ValidationErrors:
    """Per-field messages for an invalid submission.

    Keys are form field names (``title``, ``summary``, ``instructions``,
    ``creator``, ``creator_email``, ``image``) or ``general``.
    """

    errors: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.errors)
