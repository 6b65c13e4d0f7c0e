"""ASGI entrypoint for the SyncSphere sessions API."""

from syncsphere.api.app import create_app
from syncsphere.containers import build_container

app = create_app(build_container())
