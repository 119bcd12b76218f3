"""Pass-key protected administrative actions."""

import hmac
import logging
from dataclasses import dataclass

from meal_share.domain.errors import (
    AccessDeniedError,
    ConfigurationError,
    InvalidArgumentError,
)
from meal_share.services.meals import MealService

_logger = logging.getLogger(__name__)


@dataclass
class AdminService:
    """Admin operations gated by a server-held pass key."""

    meal_service: MealService
    pass_key: str | None

    def delete_meal(self, meal_id: int | None, pass_key: str | None) -> None:
        """Soft-delete a meal when the supplied pass key matches."""
        if not meal_id:
            raise InvalidArgumentError("Meal ID is required")
        if not pass_key:
            raise InvalidArgumentError("Pass key is required")
        self.check_pass_key(pass_key)
        self.meal_service.delete_meal(meal_id)

    def check_pass_key(self, supplied: str) -> None:
        """Raise unless ``supplied`` matches the configured pass key."""
        if not self.pass_key:
            _logger.error("DELETE_MEAL_PASS_KEY is not configured")
            raise ConfigurationError("Server configuration error")
        if not hmac.compare_digest(supplied.encode(), self.pass_key.encode()):
            _logger.warning("Rejected admin action with an invalid pass key")
            raise AccessDeniedError("Invalid pass key")
