"""Packaged resource helpers for :mod:`modsplit`."""

from __future__ import annotations

from importlib import resources
from importlib.resources.abc import Traversable


def get_resource(relative_path: str) -> Traversable:
    """Return a traversable handle to a packaged resource.

    Raises:
        FileNotFoundError: If no resource named ``relative_path`` ships with
            the package.

    Example:
        >>> get_resource("modsplit.defaults.toml").name
        'modsplit.defaults.toml'
    """

    candidate = resources.files(__package__).joinpath(relative_path)
    if not candidate.exists():
        raise FileNotFoundError(relative_path)
    return candidate


__all__ = ["get_resource"]
