"""Notification backends.

Growl and Snarl are reached through their command-line clients
(``growlnotify`` and ``heysnarl``), so no Python bindings are needed.
The client is started and left to finish on its own; a daemon thread reaps
it and logs failures, so delivery never holds up the run loop.
"""

from __future__ import annotations

import shutil
import subprocess
import threading
from abc import abstractmethod
from urllib.parse import quote

from stakeout.logging import get_logger
from stakeout.notify.base import Notifier

log = get_logger("notify")

APP_NAME = "stakeout"

# Seconds a notifier client may run before it is killed
CLIENT_TIMEOUT = 5.0


class NotifierUnavailableError(Exception):
    """The selected notification backend cannot be used on this machine."""


class NullNotifier(Notifier):
    """Discards notifications, logging them at debug level."""

    name = "none"

    def notify(self, title: str, message: str, icon: str, priority: int) -> None:
        log.debug("%s: %s", title, message)


class CommandNotifier(Notifier):
    """Base for backends driven by an external client program."""

    executable: str = ""
    install_hint: str = ""

    def __init__(self, executable: str | None = None) -> None:
        """Locate the client program.

        Raises:
            NotifierUnavailableError: The program is not on PATH.
        """
        found = shutil.which(executable or self.executable)
        if found is None:
            raise NotifierUnavailableError(
                f"{self.name} notifications need '{executable or self.executable}' "
                f"on PATH. {self.install_hint} "
                "Or run with --notifier none."
            )
        self.program = found
        self.delivery: threading.Thread | None = None

    @abstractmethod
    def build_args(self, title: str, message: str, icon: str, priority: int) -> list[str]:
        """Command line that delivers one notification."""

    def notify(self, title: str, message: str, icon: str, priority: int) -> None:
        """Start the client without waiting for it.

        ``delivery`` is set to the thread reaping the client, or None when the
        client could not be started.
        """
        self.delivery = None
        args = self.build_args(title, message, icon, priority)
        try:
            process = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            log.warning("%s notification failed: %s", self.name, e)
            return

        self.delivery = threading.Thread(
            target=self._reap,
            args=(process,),
            name=f"stakeout-{self.name}",
            daemon=True,
        )
        self.delivery.start()

    def _reap(self, process: subprocess.Popen[bytes]) -> None:
        try:
            _, stderr = process.communicate(timeout=CLIENT_TIMEOUT)
        except subprocess.TimeoutExpired:
            process.kill()
            process.communicate()
            log.warning(
                "%s notification failed: client still running after %gs",
                self.name,
                CLIENT_TIMEOUT,
            )
            return
        if process.returncode != 0:
            text = (stderr or b"").decode("utf-8", errors="replace").strip()
            log.warning("%s exited with %d: %s", self.program, process.returncode, text)


class GrowlNotifier(CommandNotifier):
    """Growl (macOS) via growlnotify."""

    name = "growl"
    executable = "growlnotify"
    install_hint = "Install the Growl extras package (growlnotify)."

    def build_args(self, title: str, message: str, icon: str, priority: int) -> list[str]:
        return [
            self.program,
            "--name", APP_NAME,
            "--identifier", f"{APP_NAME}-{icon}",
            "--priority", str(priority),
            "--title", title,
            "--message", message,
        ]


class SnarlNotifier(CommandNotifier):
    """Snarl (Windows) via heysnarl."""

    name = "snarl"
    executable = "heysnarl"
    install_hint = "Install Snarl 5 or later, which ships heysnarl.exe."

    def build_args(self, title: str, message: str, icon: str, priority: int) -> list[str]:
        # Snarl only knows low (-1), normal (0) and high (1)
        level = max(-1, min(1, priority))
        request = (
            f"notify?app-sig=app/{APP_NAME}"
            f"&title={quote(title)}"
            f"&text={quote(message)}"
            f"&icon={quote(icon)}"
            f"&priority={level}"
        )
        return [self.program, request]
