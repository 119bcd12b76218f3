"""Shared test fixtures."""

import io
from dataclasses import dataclass, field, replace
from typing import Any

import pytest
from PIL import Image
from slugify import slugify
from supabase import PostgrestAPIError

from meal_share.adapters.supabase_storage_client import StorageClient
from meal_share.config import Settings
from meal_share.containers import AppContainer
from meal_share.domain.errors import StorageError
from meal_share.domain.meals import ImageUpload, Meal, MealFormData
from meal_share.services.admin import AdminService
from meal_share.services.images import ImagePreprocessor
from meal_share.services.meals import MealRepository, MealService

PUBLIC_URL_PREFIX = "https://example.supabase.co/storage/v1/object/public"


def image_bytes(
    size: tuple[int, int] = (32, 32), image_format: str = "JPEG", color: str = "red"
) -> bytes:
    buffer = io.BytesIO()
    mode = "RGBA" if image_format == "PNG" else "RGB"
    Image.new(mode, size, color).save(buffer, format=image_format)
    return buffer.getvalue()


def jpeg_upload(filename: str = "tacos.jpg") -> ImageUpload:
    return ImageUpload(
        content=image_bytes(), filename=filename, media_type="image/jpeg"
    )


def make_form(**overrides: Any) -> MealFormData:
    values: dict[str, Any] = {
        "title": "Spicy Tacos",
        "summary": "A quick weeknight taco",
        "instructions": "Heat.\nServe.",
        "creator": "Ana",
        "creator_email": "ana@example.com",
        "image": jpeg_upload(),
    }
    values.update(overrides)
    return MealFormData(**values)


@dataclass
class FakeResponse:
    data: list[dict[str, Any]] | None


@dataclass
class FakeDatabase:
    """Rows per table with a unique ``slug`` column on ``meals``."""

    rows: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    next_id: int = 1
    insert_error: Exception | None = None

    def insert(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        if self.insert_error is not None:
            error, self.insert_error = self.insert_error, None
            raise error
        existing = self.rows.setdefault(table, [])
        if table == "meals" and any(
            row["slug"] == payload.get("slug") for row in existing
        ):
            raise PostgrestAPIError(
                {
                    "message": (
                        "duplicate key value violates unique constraint "
                        '"meals_slug_key"'
                    ),
                    "code": "23505",
                    "details": f"Key (slug)=({payload.get('slug')}) already exists.",
                    "hint": None,
                }
            )
        row = {"id": self.next_id, **payload}
        self.next_id += 1
        existing.append(row)
        return dict(row)


@dataclass
class FakeQuery:
    database: FakeDatabase
    table: str
    action: str = "select"
    payload: dict[str, Any] | None = None
    filters: list[tuple[str, object]] = field(default_factory=list)
    row_limit: int | None = None

    def select(self, *_columns: str) -> "FakeQuery":
        self.action = "select"
        return self

    def insert(self, payload: dict[str, Any]) -> "FakeQuery":
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self.action = "update"
        self.payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self.action = "delete"
        return self

    def eq(self, column: str, value: object) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.row_limit = count
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeQuery":
        return self

    def execute(self) -> FakeResponse:
        if self.action == "insert":
            assert self.payload is not None
            return FakeResponse(data=[self.database.insert(self.table, self.payload)])
        rows = self.database.rows.setdefault(self.table, [])
        matched = [
            row
            for row in rows
            if all(row.get(column) == value for column, value in self.filters)
        ]
        if self.action == "update":
            assert self.payload is not None
            for row in matched:
                row.update(self.payload)
        elif self.action == "delete":
            self.database.rows[self.table] = [row for row in rows if row not in matched]
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        return FakeResponse(data=[dict(row) for row in matched])


@dataclass
class FakeBucket:
    name: str
    objects: dict[str, bytes]
    content_types: dict[str, str]

    def upload(self, path: str, file: bytes, file_options: dict[str, str]) -> None:
        self.objects[path] = file
        self.content_types[path] = file_options["content-type"]

    def get_public_url(self, path: str) -> str:
        return f"{PUBLIC_URL_PREFIX}/{self.name}/{path}"

    def remove(self, paths: list[str]) -> list[dict[str, str]]:
        removed = [path for path in paths if self.objects.pop(path, None) is not None]
        return [{"name": path} for path in removed]

    def list(self, path: str, options: dict[str, str]) -> list[dict[str, str]]:
        prefix = f"{path}/" if path else ""
        search = options.get("search", "")
        names = [
            key[len(prefix) :]
            for key in self.objects
            if key.startswith(prefix) and "/" not in key[len(prefix) :]
        ]
        return [{"name": name} for name in names if search in name]


@dataclass
class FakeStorage:
    objects: dict[str, bytes] = field(default_factory=dict)
    content_types: dict[str, str] = field(default_factory=dict)

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(bucket, self.objects, self.content_types)


@dataclass
class FakeSupabaseClient:
    database: FakeDatabase = field(default_factory=FakeDatabase)
    storage: FakeStorage = field(default_factory=FakeStorage)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(database=self.database, table=name)


@dataclass
class InMemoryStorageClient(StorageClient):
    """In-memory storage client for tests."""

    objects: dict[str, bytes] = field(default_factory=dict)
    fail_deletes: bool = False

    def upload_file(self, content: bytes, media_type: str, path: str) -> str:
        self.objects[path] = content
        return f"{PUBLIC_URL_PREFIX}/meal-images/{path}"

    def delete_file(self, path: str) -> None:
        if self.fail_deletes:
            raise StorageError("Failed to delete file: bucket offline")
        self.objects.pop(path, None)

    def file_exists(self, path: str) -> bool:
        return path in self.objects


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository for tests."""

    meals: dict[int, Meal] = field(default_factory=dict)
    save_error: Exception | None = None

    def find_all(self) -> list[Meal]:
        return list(self.meals.values())

    def find_by_id(self, meal_id: int) -> Meal | None:
        return self.meals.get(meal_id)

    def find_by_slug(self, slug: str) -> Meal | None:
        for meal in self.meals.values():
            if meal.slug == slug:
                return meal
        return None

    def update(self, meal_id: int, payload: dict[str, object]) -> None:
        self.meals[meal_id] = replace(
            self.meals[meal_id], **payload  # type: ignore[arg-type]
        )

    def save_meal(self, form: MealFormData) -> Meal:
        if self.save_error is not None:
            raise self.save_error
        base = slugify(form.title)
        slug = base
        counter = 1
        while self.find_by_slug(slug) is not None:
            slug = f"{base}-{counter}"
            counter += 1
        meal_id = len(self.meals) + 1
        meal = Meal(
            id=meal_id,
            title=form.title,
            slug=slug,
            image=f"{PUBLIC_URL_PREFIX}/meal-images/meals/{slug}.jpg",
            summary=form.summary,
            instructions=form.instructions,
            creator=form.creator,
            creator_email=form.creator_email,
        )
        self.meals[meal_id] = meal
        return meal


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=(
            "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
            "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
            "c2lnbmF0dXJl"
        ),
        delete_meal_pass_key="pass-key",
    )


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def supabase_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def container(
    settings: Settings, meal_repository: InMemoryMealRepository
) -> AppContainer:
    meal_service = MealService(meal_repository)
    return AppContainer(
        settings=settings,
        meal_service=meal_service,
        admin_service=AdminService(
            meal_service=meal_service, pass_key=settings.delete_meal_pass_key
        ),
        image_preprocessor=ImagePreprocessor(
            max_dimension=settings.image_max_dimension
        ),
    )
