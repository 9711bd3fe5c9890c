"""Data models for clustering operational log events."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class EventSeverity(str, Enum):
    """Severity of an operational event."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"

    @classmethod
    def parse(cls, raw) -> "EventSeverity":
        """Map a Windows event level (number or display name) to a severity."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            # 1 Critical, 2 Error, 3 Warning, 4 Information, 5 Verbose
            if raw in (1, 2):
                return cls.ERROR
            if raw == 3:
                return cls.WARNING
            return cls.INFO
        text = str(raw).strip().lower()
        if text.isdigit():
            return cls.parse(int(text))
        if text in ("critical", "error"):
            return cls.ERROR
        if text == "warning":
            return cls.WARNING
        return cls.INFO


class LogEvent(BaseModel):
    """A single event read from the clustering event channel."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    event_id: int
    severity: EventSeverity
    message: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, v) -> EventSeverity:
        """Accept numeric levels and display names."""
        return EventSeverity.parse(v)

    @field_validator("message", mode="before")
    @classmethod
    def normalize_message(cls, v) -> str:
        """Collapse multi-line event messages onto one line."""
        if v is None:
            return ""
        return " ".join(str(v).split())

    def __str__(self) -> str:
        stamp = self.timestamp.isoformat(sep=" ", timespec="seconds")
        return f"{stamp} [{self.event_id}] {self.message}"
