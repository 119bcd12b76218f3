"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from meal_share.adapters.supabase_meal_repository import SupabaseMealRepository
from meal_share.adapters.supabase_storage_client import SupabaseStorageClient
from meal_share.config import Settings
from meal_share.services.admin import AdminService
from meal_share.services.images import ImagePreprocessor
from meal_share.services.meals import MealService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    meal_service: MealService
    admin_service: AdminService
    image_preprocessor: ImagePreprocessor


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    The Supabase client is created here exactly once and shared by every
    adapter for the life of the process.
    """
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    storage_client = SupabaseStorageClient(
        client=supabase_client, bucket=resolved_settings.storage_bucket
    )
    meal_repository = SupabaseMealRepository(
        client=supabase_client,
        storage=storage_client,
        max_slug_attempts=resolved_settings.max_slug_attempts,
    )
    meal_service = MealService(meal_repository)
    admin_service = AdminService(
        meal_service=meal_service,
        pass_key=resolved_settings.delete_meal_pass_key,
    )
    return AppContainer(
        settings=resolved_settings,
        meal_service=meal_service,
        admin_service=admin_service,
        image_preprocessor=ImagePreprocessor(
            max_dimension=resolved_settings.image_max_dimension
        ),
    )
