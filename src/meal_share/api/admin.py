"""Admin API endpoints protected by a pass key."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from meal_share.api.models import DeleteMealRequest
from meal_share.domain.errors import (
    AccessDeniedError,
    ConfigurationError,
    InvalidArgumentError,
    MealShareError,
    NotFoundError,
)

if TYPE_CHECKING:
    from meal_share.containers import AppContainer

router = APIRouter(prefix="/api/meals", tags=["admin"])

_logger = logging.getLogger(__name__)

_ERROR_STATUS: tuple[tuple[type[MealShareError], int], ...] = (
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
    (AccessDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


@router.post("/delete")
async def delete_meal(body: DeleteMealRequest, request: Request) -> JSONResponse:
    """Soft-delete a meal when the caller knows the pass key."""
    container: AppContainer = request.app.state.container
    try:
        container.admin_service.delete_meal(body.id, body.pass_key)
    except MealShareError as exc:
        for error_type, status_code in _ERROR_STATUS:
            if isinstance(exc, error_type):
                return JSONResponse({"error": exc.message}, status_code=status_code)
        _logger.exception("Error deleting meal id=%s", body.id)
        return JSONResponse(
            {"error": f"Failed to delete meal: {exc.message}"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return JSONResponse({"success": True})
