"""Error taxonomy for the rules engine."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

from tilecascade.events.bus import EventBus, GameEvent

logger = logging.getLogger(__name__)


class ErrorType(Enum):
    CONFIG = "config"
    LOGIC = "logic"
    ANIMATION = "animation"
    RESOURCE = "resource"


class GameError(Exception):
    """Base class for errors raised by the engine."""

    error_type: ErrorType = ErrorType.LOGIC

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigError(GameError, ValueError):
    """Configuration out of range; fatal at startup."""

    error_type = ErrorType.CONFIG


class LogicError(GameError, RuntimeError):
    """An internal invariant could not be upheld."""

    error_type = ErrorType.LOGIC


class AnimationStopped(GameError):
    """Raised into a pending animation wait when playback is stopped."""

    error_type = ErrorType.ANIMATION


def report_error(event_bus: EventBus | None, error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an error and publish it on the bus."""
    error_type = getattr(error, "error_type", ErrorType.LOGIC)
    context = context or {}
    logger.error("[%s] %s (context=%s)", error_type.value, error, context, exc_info=error)
    if event_bus is not None:
        event_bus.emit(
            GameEvent.ERROR,
            error_type=error_type,
            message=str(error),
            error=error,
            context=context,
        )
