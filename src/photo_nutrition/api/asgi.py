"""ASGI entrypoint for the photo nutrition API."""

from photo_nutrition.api.app import create_app
from photo_nutrition.containers import build_container

app = create_app(build_container())
