"""ASGI entrypoint for the messaging scheduler API."""

from messaging_scheduler.api.app import create_app
from messaging_scheduler.containers import build_container

app = create_app(build_container())
