"""HTTP API for contentsync."""

from contentsync.api.app import create_app

__all__ = ["create_app"]
