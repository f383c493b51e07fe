"""HTTP API for skillsync."""

from skillsync.api.app import create_app

__all__ = ["create_app"]
