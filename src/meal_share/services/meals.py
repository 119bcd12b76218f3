"""Meal sharing service."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from meal_share.domain.errors import InvalidArgumentError, NotFoundError
from meal_share.domain.meals import Meal, MealFormData, ValidationErrors

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
MAX_IMAGE_BYTES = 5 * 1024 * 1024

_EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for meals."""

    def find_all(self) -> list[Meal]:
        """Return all meals, including soft-deleted ones."""

    def find_by_id(self, meal_id: int) -> Meal | None:
        """Return a meal by id, if present."""

    def find_by_slug(self, slug: str) -> Meal | None:
        """Return a meal by slug, if present."""

    def update(self, meal_id: int, payload: dict[str, object]) -> None:
        """Update the given fields of a meal."""

    def save_meal(self, form: MealFormData) -> Meal:
        """Store the image and insert a new meal row."""


@dataclass
class MealService:
    """Validation and soft-delete rules on top of the meal repository."""

    repository: MealRepository

    def get_all_meals(self) -> list[Meal]:
        """Return every meal that has not been soft-deleted."""
        return [meal for meal in self.repository.find_all() if not meal.is_deleted]

    def get_meal_by_slug(self, slug: str) -> Meal | None:
        """Return a visible meal by slug; deleted meals read as missing."""
        if not slug or not slug.strip():
            raise InvalidArgumentError("Slug is required")
        meal = self.repository.find_by_slug(slug)
        if meal is None or meal.is_deleted:
            return None
        return meal

    def create_meal(self, form: MealFormData) -> Meal | ValidationErrors:
        """Validate a submission and save it.

        Invalid submissions come back as ``ValidationErrors`` and never
        reach the repository.
        """
        errors = self.validate_meal_data(form)
        if errors:
            _logger.info("Rejected meal submission: %s", sorted(errors.errors))
            return errors
        meal = self.repository.save_meal(form)
        _logger.info("Created meal %s (id=%s)", meal.slug, meal.id)
        return meal

    def delete_meal(self, meal_id: int) -> None:
        """Soft-delete a meal."""
        if self.repository.find_by_id(meal_id) is None:
            _logger.warning("Delete requested for unknown meal id=%s", meal_id)
            raise NotFoundError(f"Meal with ID {meal_id} not found")
        self.repository.update(meal_id, {"is_deleted": True})
        _logger.info("Soft-deleted meal id=%s", meal_id)

    def validate_meal_data(self, form: MealFormData) -> ValidationErrors:
        """Collect every validation failure for a submission."""
        errors: dict[str, str] = {}
        for field, label, minimum, maximum, plural in (
            ("title", "Title", 3, 100, False),
            ("summary", "Summary", 10, 500, False),
            ("instructions", "Instructions", 10, 5000, True),
            ("creator", "Creator name", 3, 50, False),
        ):
            message = _length_error(
                getattr(form, field), label, minimum, maximum, plural=plural
            )
            if message:
                errors[field] = message

        if not form.creator_email or not form.creator_email.strip():
            errors["creator_email"] = "Creator email is required"
        elif not _EMAIL_PATTERN.search(form.creator_email):
            errors["creator_email"] = "Creator email must be a valid email address"

        image = form.image
        if image is None:
            errors["image"] = "Image is required"
        elif image.media_type not in ALLOWED_IMAGE_TYPES:
            errors["image"] = "Image must be a JPEG, PNG, or WebP file"
        elif image.size > MAX_IMAGE_BYTES:
            errors["image"] = "Image must be smaller than 5MB"

        return ValidationErrors(errors)


def _length_error(
    value: str | None, label: str, minimum: int, maximum: int, *, plural: bool
) -> str | None:
    if not value or not value.strip():
        return f"{label} {'are' if plural else 'is'} required"
    if len(value) < minimum:
        return f"{label} must be at least {minimum} characters long"
    if len(value) > maximum:
        return f"{label} must be at most {maximum} characters long"
    return None
