"""User-facing notices raised while exporting.

Fallbacks produce informational, non-blocking notices. Terminal failures
produce blocking error notices. A :class:`Notifier` decides how notices
reach the user; the default writes them to the log.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A message for the user.

    Attributes:
        level: Severity of the notice
        message: Human readable text
        blocking: True if the export ended without the requested result
    """
    level: NoticeLevel
    message: str
    blocking: bool = False

    @classmethod
    def fallback(cls, message: str) -> Notice:
        return cls(NoticeLevel.INFO, message, blocking=False)

    @classmethod
    def failure(cls, message: str) -> Notice:
        return cls(NoticeLevel.ERROR, message, blocking=True)


class Notifier(ABC):
    """Receives the notices of an export."""

    @abstractmethod
    def notify(self, notice: Notice) -> None:
        ...


class LoggingNotifier(Notifier):
    """Writes notices to the log."""

    def notify(self, notice: Notice) -> None:
        if notice.level == NoticeLevel.ERROR:
            logger.error(notice.message)
        else:
            logger.warning(notice.message)


@dataclass
class CollectingNotifier(Notifier):
    """Keeps all notices in a list, optionally forwarding them."""

    notices: list[Notice] = field(default_factory=list)
    forward_to: Notifier | None = None

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)
        if self.forward_to is not None:
            self.forward_to.notify(notice)

    @property
    def messages(self) -> list[str]:
        return [notice.message for notice in self.notices]
