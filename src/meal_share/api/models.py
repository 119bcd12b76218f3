"""Pydantic models for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field

from meal_share.domain.meals import Meal


class MealResponse(BaseModel):
    """Public view of a meal."""

    id: int | None
    title: str
    slug: str
    image: str
    summary: str
    instructions: str
    creator: str
    creator_email: str

    @classmethod
    def from_meal(cls, meal: Meal) -> "MealResponse":
        return cls(
            id=meal.id,
            title=meal.title,
            slug=meal.slug,
            image=meal.image,
            summary=meal.summary,
            instructions=meal.instructions,
            creator=meal.creator,
            creator_email=meal.creator_email,
        )


class MealListResponse(BaseModel):
    meals: list[MealResponse]


class DeleteMealRequest(BaseModel):
    """Body of the administrative delete action."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    pass_key: str | None = Field(default=None, alias="passKey")
