"""ASGI entrypoint for the meal sharing API."""

from meal_share.api.app import create_app
from meal_share.containers import build_container

app = create_app(build_container())
