"""Desktop notifications for run events.

The engine only talks to the ``Notifier`` interface. Which backend stands
behind it is decided once, at startup, by ``create_notifier``.
"""

from __future__ import annotations

import sys

from stakeout.notify.backends import (
    CommandNotifier,
    GrowlNotifier,
    NotifierUnavailableError,
    NullNotifier,
    SnarlNotifier,
)
from stakeout.notify.base import Notifier

BACKENDS: dict[str, type[Notifier]] = {
    "growl": GrowlNotifier,
    "snarl": SnarlNotifier,
    "none": NullNotifier,
}

BACKEND_CHOICES = ("auto", *BACKENDS)


def default_backend(platform: str | None = None) -> str:
    """Backend picked by ``auto`` for a ``sys.platform`` value."""
    platform = platform or sys.platform
    if platform == "darwin":
        return "growl"
    if platform == "win32":
        return "snarl"
    return "none"


def create_notifier(backend: str = "auto") -> Notifier:
    """Instantiate the notifier for ``backend``.

    Raises:
        NotifierUnavailableError: Unknown backend, or its client program is
            missing.
    """
    name = default_backend() if backend == "auto" else backend
    try:
        notifier_class = BACKENDS[name]
    except KeyError:
        raise NotifierUnavailableError(
            f"Unknown notifier '{backend}'. Choose one of: {', '.join(BACKEND_CHOICES)}."
        ) from None
    return notifier_class()


__all__ = [
    "BACKEND_CHOICES",
    "CommandNotifier",
    "GrowlNotifier",
    "Notifier",
    "NotifierUnavailableError",
    "NullNotifier",
    "SnarlNotifier",
    "create_notifier",
    "default_backend",
]
