"""Generic Supabase table repository."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
from supabase import Client, PostgrestAPIError

from meal_share.domain.errors import ConstraintViolationError, StoreError

T = TypeVar("T")

UNIQUE_VIOLATION = "23505"

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseRecordRepository(Generic[T]):
    """CRUD access to a single table, parsing rows with ``parse``.

    Each call is one PostgREST request and therefore one transaction.
    """

    client: Client
    table_name: str
    parse: Callable[[dict[str, Any]], T]

    def find_all(self) -> list[T]:
        """Return every row in the table."""
        response = self._execute(
            "find all", lambda: self._table().select("*").order("id").execute()
        )
        return [self.parse(row) for row in response.data or []]

    def find_by_id(self, record_id: int) -> T | None:
        """Return the row with ``record_id``, if present."""
        return self.find_one_by_field("id", record_id)

    def find_by_field(self, field: str, value: object) -> list[T]:
        """Return rows where ``field`` equals ``value``."""
        response = self._execute(
            f"find by {field}",
            lambda: self._table().select("*").eq(field, value).execute(),
        )
        return [self.parse(row) for row in response.data or []]

    def find_one_by_field(self, field: str, value: object) -> T | None:
        """Return the first row where ``field`` equals ``value``."""
        response = self._execute(
            f"find one by {field}",
            lambda: self._table().select("*").eq(field, value).limit(1).execute(),
        )
        if not response.data:
            return None
        return self.parse(response.data[0])

    def create(self, payload: dict[str, object]) -> int:
        """Insert a row with exactly the given fields and return its id."""
        values = {key: value for key, value in payload.items() if key != "id"}
        response = self._execute(
            "create", lambda: self._table().insert(values).execute()
        )
        if not response.data:
            _logger.error("Insert into %s returned no rows", self.table_name)
            raise StoreError(
                f"Failed to create record in {self.table_name}",
                table=self.table_name,
            )
        return int(response.data[0]["id"])

    def update(self, record_id: int, payload: dict[str, object]) -> None:
        """Update the given fields on the row with ``record_id``."""
        self._execute(
            "update",
            lambda: self._table().update(payload).eq("id", record_id).execute(),
        )

    def delete(self, record_id: int) -> None:
        """Physically remove the row with ``record_id``."""
        self._execute(
            "delete", lambda: self._table().delete().eq("id", record_id).execute()
        )

    def exists_by_field(self, field: str, value: object) -> bool:
        """Return whether any row has ``field`` equal to ``value``."""
        response = self._execute(
            f"exists by {field}",
            lambda: self._table().select("id").eq(field, value).limit(1).execute(),
        )
        return bool(response.data)

    def _table(self):  # type: ignore[no-untyped-def]
        return self.client.table(self.table_name)

    def _execute(self, action: str, call: Callable[[], Any]) -> Any:
        try:
            return call()
        except PostgrestAPIError as exc:
            _logger.exception("Supabase %s failed on %s", action, self.table_name)
            error_class = (
                ConstraintViolationError
                if exc.code == UNIQUE_VIOLATION
                else StoreError
            )
            raise error_class(
                f"Failed to {action} in {self.table_name}: "
                f"{exc.message or 'Unknown error'}",
                table=self.table_name,
                detail=exc.details,
            ) from exc
        except httpx.HTTPError as exc:
            _logger.exception("Supabase %s unreachable for %s", action, self.table_name)
            raise StoreError(
                f"Failed to {action} in {self.table_name}: {exc}",
                table=self.table_name,
            ) from exc
