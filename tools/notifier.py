"""
Notification sinks — where user-visible messages go.

The pipeline only knows the Notifier protocol. Concrete sinks post to
Foundry chat (foundry/chat.py), a Discord channel (bot/notifiers.py) or
just the log.
"""

import logging
from enum import Enum
from typing import List, Protocol, runtime_checkable

logger = logging.getLogger("Notifier")


class Severity(str, Enum):
    INFO = "info"
    ERROR = "error"


@runtime_checkable
class Notifier(Protocol):
    async def notify(self, message: str, severity: Severity = Severity.INFO) -> None: ...


class LogNotifier:
    """Writes notifications to the log. Fallback when nothing else is wired."""

    async def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        if severity == Severity.ERROR:
            logger.error(message)
        else:
            logger.info(message)


class CompositeNotifier:
    """Fans a notification out to several sinks. One failing sink doesn't block the rest."""

    def __init__(self, sinks: List[Notifier]):
        self.sinks = list(sinks)

    async def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        for sink in self.sinks:
            try:
                await sink.notify(message, severity)
            except Exception as e:
                logger.error(f"{type(sink).__name__} failed to deliver '{message}': {e}")
