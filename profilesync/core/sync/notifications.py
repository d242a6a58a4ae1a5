"""
Notices - UI-facing success/error messages

Notices are opaque to the sync core: it only pushes a message, a level and an
optional auto-dismiss duration. NoticeBoard keeps a bounded history that the
API exposes to whatever renders them.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    duration_ms: Optional[int] = None
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["level"] = self.level.value
        return data


class NotificationSink(ABC):
    """Destination for user-facing notices."""

    @abstractmethod
    def notify(self, notice: Notice) -> None:
        """Deliver a notice."""

    def success(self, message: str, duration_ms: Optional[int] = None) -> None:
        self.notify(Notice(NoticeLevel.SUCCESS, message, duration_ms))

    def error(self, message: str, duration_ms: Optional[int] = None) -> None:
        self.notify(Notice(NoticeLevel.ERROR, message, duration_ms))


class NoticeBoard(NotificationSink):
    """Bounded in-memory notice history, newest last."""

    def __init__(self, max_notices: int = 50):
        self._notices: Deque[Notice] = deque(maxlen=max_notices)

    def notify(self, notice: Notice) -> None:
        self._notices.append(notice)
        if notice.level is NoticeLevel.ERROR:
            logger.warning(f"Notice: {notice.message}")
        else:
            logger.info(f"Notice: {notice.message}")

    def recent(self, limit: Optional[int] = None) -> List[Notice]:
        notices = list(self._notices)
        if limit is not None:
            notices = notices[-limit:] if limit > 0 else []
        return notices
