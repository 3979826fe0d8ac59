"""Usage events for tangent-mode sessions."""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class TelemetryResult(Enum):
    """Outcome attached to a usage event."""

    SUCCEEDED = "succeeded"


@dataclass(frozen=True, slots=True)
class TangentModeSessionArgs:
    """Payload of a tangent-mode session event."""

    duration_seconds: int


@dataclass(frozen=True, slots=True)
class TangentModeSessionEvent:
    session_id: str
    result: TelemetryResult
    args: TangentModeSessionArgs

    def as_dict(self) -> dict[str, object]:
        return {
            "session_id": self.session_id,
            "result": self.result.value,
            **asdict(self.args),
        }


class UsageEventSink(Protocol):
    """Destination for usage events. Sends are best-effort."""

    async def send_tangent_mode_session(
        self,
        session_id: str,
        result: TelemetryResult,
        args: TangentModeSessionArgs,
    ) -> None: ...


class LoggingEventSink:
    """Sink that writes events to the log and keeps them in memory."""

    def __init__(self) -> None:
        self.events: list[TangentModeSessionEvent] = []

    async def send_tangent_mode_session(
        self,
        session_id: str,
        result: TelemetryResult,
        args: TangentModeSessionArgs,
    ) -> None:
        event = TangentModeSessionEvent(session_id, result, args)
        self.events.append(event)
        logger.info(f"Usage event tangent_mode_session: {event.as_dict()}")
