"""ASGI entrypoint for the household API."""

from household.api.app import create_app
from household.containers import build_container

app = create_app(build_container())
