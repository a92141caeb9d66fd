"""ASGI entrypoint for the photobooth gallery API."""

from photobooth_gallery.api.app import create_app
from photobooth_gallery.containers import build_container

app = create_app(build_container())
