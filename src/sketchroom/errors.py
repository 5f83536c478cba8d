"""
sketchroom.errors — Custom exception classes
============================================

Defines the exception hierarchy used across the client core.
Action errors carry a user-facing message plus enough context
for structured logging.
"""

from __future__ import annotations
from typing import Any, Dict, Optional
import json


class SketchroomError(Exception):
    """Base exception for all sketchroom package errors."""
    pass


class ConfigError(SketchroomError):
    """Raised when the client configuration is incomplete or invalid."""
    pass


class StoreUnavailableError(SketchroomError):
    """Raised by a store adapter when a read or write could not reach the backend."""
    pass


class RoomNotFoundError(SketchroomError):
    """Raised when the store reports that a room no longer exists."""

    def __init__(self, room_code: str):
        self.room_code = room_code
        super().__init__(f"Room '{room_code}' not found")


class InvalidTransitionError(SketchroomError):
    """Raised when a room status change is not in the transition table."""

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid transition: {from_status} -> {to_status}")


class ActionError(SketchroomError):
    """Raised when an action initiated by the local player fails."""

    def __init__(
        self,
        action: str,
        user_message: str,
        room_code: Optional[str] = None,
        player_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.action = action
        self.user_message = user_message
        self.room_code = room_code
        self.player_id = player_id
        self.details = details or {}
        super().__init__(f"Action '{action}' failed: {user_message}")

    def format_error_log(self) -> str:
        return _format_error_block(
            error_type=self.__class__.__name__,
            action=self.action,
            room_code=self.room_code,
            player_id=self.player_id,
            message=self.user_message,
            details=self.details,
        )


class NotAllowedError(ActionError):
    """Raised when an action is not valid for the current phase or role."""
    pass


def _format_error_block(
    error_type: str,
    action: str,
    room_code: Optional[str],
    player_id: Optional[str],
    message: str,
    details: Dict[str, Any],
) -> str:
    """Format a structured error block for the log file."""
    from datetime import datetime, timezone

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    lines = [
        "",
        "=" * 64,
        " ACTION ERROR",
        "=" * 64,
        f" Timestamp:    {timestamp}",
        f" Error Type:   {error_type}",
        f" Action:       {action}",
        f" Room:         {room_code or '-'}",
        f" Player:       {player_id or '-'}",
        f" Message:      {message}",
    ]

    if details:
        lines.append("")
        lines.append(" ── DETAILS " + "─" * 52)
        lines.append(_indent_json(details))

    lines.append("")
    lines.append("=" * 64)
    lines.append("")

    return "\n".join(lines)


def _indent_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format JSON with indentation for error logs."""
    try:
        formatted = json.dumps(data, indent=indent, default=str)
        return "\n".join(" " + line for line in formatted.split("\n"))
    except (TypeError, ValueError):
        return f" {repr(data)}"
