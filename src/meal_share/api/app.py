"""FastAPI application factory."""

import logging

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse

from meal_share.api.admin import router as admin_router
from meal_share.api.models import MealListResponse, MealResponse
from meal_share.app_logging import configure_logging
from meal_share.containers import AppContainer
from meal_share.domain.errors import (
    DuplicateTitleError,
    ImageProcessingError,
    InvalidArgumentError,
    MealShareError,
)
from meal_share.domain.meals import ImageUpload, MealFormData, ValidationErrors


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI(title="Meal Share")
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/meals")
    async def list_meals(request: Request) -> MealListResponse:
        """Return every meal that has not been deleted."""
        state_container: AppContainer = request.app.state.container
        meals = state_container.meal_service.get_all_meals()
        return MealListResponse(meals=[MealResponse.from_meal(meal) for meal in meals])

    @app.get("/meals/{slug}")
    async def meal_detail(slug: str, request: Request) -> MealResponse:
        """Return one meal by slug."""
        state_container: AppContainer = request.app.state.container
        try:
            meal = state_container.meal_service.get_meal_by_slug(slug)
        except InvalidArgumentError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message
            ) from exc
        if meal is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Meal not found"
            )
        return MealResponse.from_meal(meal)

    @app.post("/meals", response_model=None)
    async def share_meal(  # noqa: PLR0913
        request: Request,
        title: str = Form(""),
        summary: str = Form(""),
        instructions: str = Form(""),
        name: str = Form(""),
        email: str = Form(""),
        image: UploadFile | None = File(None),
    ) -> JSONResponse:
        """Accept a share-meal form submission."""
        state_container: AppContainer = request.app.state.container
        upload = await _read_upload(image)
        if upload is not None:
            try:
                upload = state_container.image_preprocessor.prepare(upload)
            except ImageProcessingError as exc:
                return _errors_response({"image": exc.message})
        form = MealFormData(
            title=title,
            summary=summary,
            instructions=instructions,
            creator=name,
            creator_email=email,
            image=upload,
        )
        try:
            result = state_container.meal_service.create_meal(form)
        except DuplicateTitleError as exc:
            return _errors_response(
                {
                    "title": exc.message,
                    "general": "Failed to save meal due to duplicate title.",
                },
                status_code=status.HTTP_409_CONFLICT,
            )
        except MealShareError as exc:
            logger.exception("Error saving meal %r", title)
            return _errors_response(
                {"general": f"Failed to save meal: {exc.message}"},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        if isinstance(result, ValidationErrors):
            return _errors_response(result.errors)
        return JSONResponse(
            MealResponse.from_meal(result).model_dump(),
            status_code=status.HTTP_201_CREATED,
        )

    return app


async def _read_upload(image: UploadFile | None) -> ImageUpload | None:
    if image is None or not image.filename:
        return None
    content = await image.read()
    return ImageUpload(
        content=content,
        filename=image.filename,
        media_type=image.content_type or "application/octet-stream",
    )


def _errors_response(
    errors: dict[str, str],
    status_code: int = 422,
) -> JSONResponse:
    return JSONResponse({"errors": errors}, status_code=status_code)
