"""ASGI entrypoint for the recipe database API."""

from recipe_db.api.app import create_app
from recipe_db.containers import build_container

app = create_app(build_container())
