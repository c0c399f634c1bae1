"""
Request Tracing Module

Wraps every hash command with a "record request/response" hook.

The hook observes commands only: a tracer that raises is logged and ignored,
and the command's own result or exception always reaches the caller unchanged.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar

from hashcache.common.timer import Timer
from hashcache.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class TraceEvent:
    """
    Trace Event

    One command sent to the store and its outcome.
    """

    # Wrapper that issued the command ("TypedHash", "RecordMapper"...)
    call_type: str
    # Record key
    key: str
    # Store command name (HGET, EVALSHA...)
    command: str
    # Arguments sent with the command
    sent: dict[str, Any] = field(default_factory=dict)
    # Reply, None when the command failed
    received: Any = None
    elapsed_ms: Optional[float] = None
    error: Optional[BaseException] = None


class RequestTracer(Protocol):
    """Receives one TraceEvent per command."""

    def record(self, event: TraceEvent) -> None:
        ...


class NullTracer:
    """Tracer that drops every event."""

    def record(self, event: TraceEvent) -> None:
        return None


class LoggingTracer:
    """
    Logging Tracer

    Logs successful commands at DEBUG and failed commands at WARNING.
    """

    def __init__(self, logger_name: str = "hashcache.trace"):
        self.logger = logging.getLogger(logger_name)

    def record(self, event: TraceEvent) -> None:
        if event.error is not None:
            self.logger.warning(
                f"{event.call_type} {event.command} {event.key} failed "
                f"after {event.elapsed_ms:.2f}ms: {event.error!r} sent={event.sent}"
            )
            return
        self.logger.debug(
            f"{event.call_type} {event.command} {event.key} "
            f"{event.elapsed_ms:.2f}ms sent={event.sent} received={event.received!r}"
        )


def _emit(tracer: RequestTracer, event: TraceEvent) -> None:
    try:
        tracer.record(event)
    except Exception:
        logger.exception(f"Request tracer failed for {event.command} {event.key}")


async def trace_call(
    tracer: RequestTracer,
    call_type: str,
    key: str,
    command: str,
    sent: dict[str, Any],
    operation: Callable[[], Awaitable[T]],
) -> T:
    """
    Run one store command under the tracer

    Args:
        tracer: Tracer receiving the event
        call_type: Name of the wrapper issuing the command
        key: Record key
        command: Store command name
        sent: Arguments worth recording
        operation: Zero-argument coroutine function performing the command

    Returns:
        The command's result, unchanged
    """
    timer = Timer().start()
    try:
        received = await operation()
    except Exception as exc:
        timer.stop()
        _emit(
            tracer,
            TraceEvent(call_type, key, command, sent, elapsed_ms=timer.elapsed_ms, error=exc),
        )
        raise
    timer.stop()
    _emit(
        tracer,
        TraceEvent(call_type, key, command, sent, received=received, elapsed_ms=timer.elapsed_ms),
    )
    return received


def get_default_tracer() -> RequestTracer:
    """
    Get the tracer selected by configuration

    Returns:
        RequestTracer: LoggingTracer when TRACE_ENABLED, otherwise NullTracer
    """
    if get_settings().TRACE_ENABLED:
        return LoggingTracer()
    return NullTracer()
