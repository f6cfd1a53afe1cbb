"""Service package public API definitions.

The Graph client imports ``app.services.exceptions``, which executes this
module first. ``BookingService`` in turn depends on the Graph client, so it
is imported lazily on first access to keep that chain acyclic.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "BookingService",
]

_SERVICE_MODULES = {
    "BookingService": "booking",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .booking import BookingService as BookingService
