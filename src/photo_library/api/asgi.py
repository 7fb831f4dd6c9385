"""ASGI entrypoint for the photo library API."""

from photo_library.api.app import create_app
from photo_library.containers import build_container

app = create_app(build_container())
