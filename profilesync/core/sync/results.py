"""
Action Results - Outcome of user-triggered controller actions
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ActionStatus(str, Enum):
    """How a controller action ended."""
    COMPLETED = "completed"
    SKIPPED = "skipped"      # nothing to do (e.g. profile already selected)
    DROPPED = "dropped"      # same action already in flight
    FAILED = "failed"


@dataclass(frozen=True)
class ActionResult:
    """
    Result of an import/select/enhance/chain action.

    Attributes:
        action: Operation kind ("import", "select", "enhance", "chain")
        status: Outcome
        message: Human-readable summary (mirrors the notice, if any)
        error: Exception that made the action fail
        data: Action-specific payload
    """
    action: str
    status: ActionStatus
    message: Optional[str] = None
    error: Optional[Exception] = None
    data: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status in (ActionStatus.COMPLETED, ActionStatus.SKIPPED)

    @classmethod
    def completed(cls, action: str, message: Optional[str] = None, **data: Any) -> "ActionResult":
        return cls(action, ActionStatus.COMPLETED, message, data=data or None)

    @classmethod
    def skipped(cls, action: str, message: Optional[str] = None) -> "ActionResult":
        return cls(action, ActionStatus.SKIPPED, message)

    @classmethod
    def dropped(cls, action: str) -> "ActionResult":
        return cls(action, ActionStatus.DROPPED, f"{action} already in progress")

    @classmethod
    def failed(cls, action: str, error: Exception, message: Optional[str] = None) -> "ActionResult":
        return cls(action, ActionStatus.FAILED, message or str(error), error=error)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "action": self.action,
            "status": self.status.value,
            "message": self.message,
        }
        if self.error is not None:
            result["error"] = type(self.error).__name__
        if self.data:
            result["data"] = self.data
        return result
