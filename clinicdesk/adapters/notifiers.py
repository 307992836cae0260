"""Notifier adapters.

Implementations of NotifierPort used by the application: one that writes to
the log, one that keeps notifications in memory until a UI layer drains
them, and one that prints them to the terminal for the CLI.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape

from clinicdesk.domain.ports import Notification, NotifierPort

logger = logging.getLogger(__name__)


class LoggingNotifier(NotifierPort):
    """Writes notifications to the log (warning for destructive ones)."""

    def notify(self, notification: Notification) -> None:
        level = logging.WARNING if notification.is_destructive else logging.INFO
        logger.log(level, f"{notification.title}: {notification.description}")


class CollectingNotifier(NotifierPort):
    """Keeps notifications in memory, in the order they were raised."""

    def __init__(self):
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def drain(self) -> list[Notification]:
        """Return and clear the pending notifications."""
        pending, self.notifications = self.notifications, []
        return pending

    @property
    def last(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None


class ConsoleNotifier(NotifierPort):
    """Prints notifications with rich markup."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def notify(self, notification: Notification) -> None:
        if notification.is_destructive:
            self.console.print(f"[red]✗ {escape(notification.title)}[/red] {escape(notification.description)}")
        else:
            self.console.print(f"[green]✓ {escape(notification.title)}[/green] {escape(notification.description)}")
