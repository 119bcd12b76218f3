"""Supabase repository for shared meals and their images."""

import logging
from dataclasses import dataclass, field
from typing import Any

from slugify import slugify
from supabase import Client

from meal_share.adapters.supabase_record_repository import SupabaseRecordRepository
from meal_share.adapters.supabase_storage_client import StorageClient
from meal_share.domain.errors import (
    ConstraintViolationError,
    DuplicateTitleError,
    MealPersistenceError,
    SlugExhaustedError,
    StorageError,
    StoreError,
)
from meal_share.domain.meals import Meal, MealFormData
from meal_share.sanitizers import sanitize_instructions
from meal_share.services.images import image_extension
from meal_share.services.meals import MealRepository

MEALS_TABLE = "meals"
IMAGE_PREFIX = "meals"
FALLBACK_SLUG = "meal"

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Meal persistence over the ``meals`` table and an image bucket.

    Owns slug assignment and image paths. A meal is saved in two steps:
    the image is uploaded first, then the row is inserted. If the insert
    fails the uploaded image is removed again.
    """

    client: Client
    storage: StorageClient
    max_slug_attempts: int = 10_000
    records: SupabaseRecordRepository[Meal] = field(init=False)

    def __post_init__(self) -> None:
        self.records = SupabaseRecordRepository(
            client=self.client, table_name=MEALS_TABLE, parse=_parse_meal
        )

    def find_all(self) -> list[Meal]:
        """Return all meals, including soft-deleted ones."""
        return self.records.find_all()

    def find_by_id(self, meal_id: int) -> Meal | None:
        """Return a meal by id, if present."""
        return self.records.find_by_id(meal_id)

    def find_by_slug(self, slug: str) -> Meal | None:
        """Return a meal by slug, if present."""
        return self.records.find_one_by_field("slug", slug)

    def slug_exists(self, slug: str) -> bool:
        return self.records.exists_by_field("slug", slug)

    def update(self, meal_id: int, payload: dict[str, object]) -> None:
        """Update the given fields of a meal."""
        self.records.update(meal_id, payload)

    def delete(self, meal_id: int) -> None:
        """Physically remove a meal row."""
        self.records.delete(meal_id)

    def generate_unique_slug(self, title: str) -> str:
        """Return the first free slug among ``base``, ``base-1``, ``base-2``..."""
        base = slugify(title) or FALLBACK_SLUG
        candidate = base
        counter = 1
        while self.slug_exists(candidate):
            if counter > self.max_slug_attempts:
                _logger.error("Gave up finding a free slug for %r", base)
                raise SlugExhaustedError(
                    f"No free slug for '{base}' after {self.max_slug_attempts} attempts"
                )
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate

    def save_meal(self, form: MealFormData) -> Meal:
        """Upload the meal image and insert the meal row."""
        if form.image is None:
            raise MealPersistenceError("Failed to save meal: image is missing")
        slug = self.generate_unique_slug(form.title)
        image_path = f"{IMAGE_PREFIX}/{slug}.{image_extension(form.image)}"
        image_url = self.storage.upload_file(
            form.image.content, form.image.media_type, image_path
        )
        meal = Meal(
            title=form.title,
            slug=slug,
            image=image_url,
            summary=form.summary,
            instructions=sanitize_instructions(form.instructions),
            creator=form.creator,
            creator_email=form.creator_email,
        )
        try:
            meal_id = self.records.create(_meal_row(meal))
        except Exception as exc:
            self._discard_image(image_path)
            if isinstance(exc, ConstraintViolationError) and _names_slug(exc):
                raise DuplicateTitleError() from exc
            if isinstance(exc, StoreError):
                raise MealPersistenceError(f"Database error: {exc.message}") from exc
            raise
        return Meal(**{**_meal_row(meal), "id": meal_id})

    def _discard_image(self, image_path: str) -> None:
        try:
            self.storage.delete_file(image_path)
        except StorageError:
            _logger.exception("Could not remove orphaned image %s", image_path)
        else:
            _logger.info("Removed image %s after failed insert", image_path)


def _names_slug(exc: StoreError) -> bool:
    return "slug" in exc.message or "slug" in (exc.detail or "")


def _meal_row(meal: Meal) -> dict[str, Any]:
    return {
        "title": meal.title,
        "slug": meal.slug,
        "image": meal.image,
        "summary": meal.summary,
        "instructions": meal.instructions,
        "creator": meal.creator,
        "creator_email": meal.creator_email,
        "is_deleted": meal.is_deleted,
    }


def _parse_meal(row: dict[str, Any]) -> Meal:
    """Parse a meals row into a domain model."""
    return Meal(
        id=int(row["id"]),
        title=str(row.get("title", "")),
        slug=str(row.get("slug", "")),
        image=str(row.get("image", "")),
        summary=str(row.get("summary", "")),
        instructions=str(row.get("instructions", "")),
        creator=str(row.get("creator", "")),
        creator_email=str(row.get("creator_email", "")),
        is_deleted=bool(row.get("is_deleted") or False),
    )
