"""Notifier interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

# (title, icon, priority) for each event
CHANGED = ("Changed", "changed", -1)
PASSED = ("Pass", "pass", 0)
FAILED = ("Fail", "fail", 2)


class Notifier(ABC):
    """Receives run events and shows them to the operator.

    Backends implement ``notify``; the three event verbs are built on it.
    Implementations must not raise for delivery failures, only log them.
    """

    name: str = "base"

    @abstractmethod
    def notify(self, title: str, message: str, icon: str, priority: int) -> None:
        """Deliver one notification."""

    def notify_changed(self, path: str) -> None:
        title, icon, priority = CHANGED
        self.notify(title, path, icon, priority)

    def notify_pass(self, summary: str) -> None:
        title, icon, priority = PASSED
        self.notify(title, summary, icon, priority)

    def notify_fail(self, summary: str) -> None:
        title, icon, priority = FAILED
        self.notify(title, summary, icon, priority)
