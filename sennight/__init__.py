"""Core package for the Sennight dating backend."""

from __future__ import annotations

from typing import Any

from .store import CollectionStore, resolve_data_dir


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP API application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "CollectionStore",
    "create_app",
    "resolve_data_dir",
]
