"""
Push Channel Protocol for Live Document Sync.

Defines the change notifications the store pushes over the WebSocket
channel, the few client frames the viewer may send back, and the
reconnect policy used when the channel drops.

Server frames are JSON objects tagged by ``type``:
- {"type": "Reload"}
- {"type": "FileAdded", "name": ...}
- {"type": "FileRemoved", "name": ...}
- {"type": "FileRenamed", "old_name": ..., "new_name": ...}
- {"type": "Pong"}
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ChangeEventType(str, Enum):
    """Notification tags sent by the store."""
    RELOAD = "Reload"
    FILE_ADDED = "FileAdded"
    FILE_REMOVED = "FileRemoved"
    FILE_RENAMED = "FileRenamed"
    PONG = "Pong"


class ClientMessageType(str, Enum):
    """Frames the viewer may send to the store."""
    PING = "Ping"
    REQUEST_REFRESH = "RequestRefresh"


# Required payload fields per event type.
_REQUIRED_FIELDS: Dict[ChangeEventType, tuple] = {
    ChangeEventType.RELOAD: (),
    ChangeEventType.PONG: (),
    ChangeEventType.FILE_ADDED: ("name",),
    ChangeEventType.FILE_REMOVED: ("name",),
    ChangeEventType.FILE_RENAMED: ("old_name", "new_name"),
}


@dataclass(frozen=True)
class ChangeEvent:
    """
    A change notification from the store.

    These are hints only; the listing endpoint is authoritative.

    Attributes:
        type: The notification tag.
        name: Affected path for FileAdded/FileRemoved.
        old_name: Previous path for FileRenamed.
        new_name: New path for FileRenamed.
    """
    type: ChangeEventType
    name: Optional[str] = None
    old_name: Optional[str] = None
    new_name: Optional[str] = None

    @classmethod
    def reload(cls) -> "ChangeEvent":
        return cls(type=ChangeEventType.RELOAD)

    @classmethod
    def added(cls, name: str) -> "ChangeEvent":
        return cls(type=ChangeEventType.FILE_ADDED, name=name)

    @classmethod
    def removed(cls, name: str) -> "ChangeEvent":
        return cls(type=ChangeEventType.FILE_REMOVED, name=name)

    @classmethod
    def renamed(cls, old_name: str, new_name: str) -> "ChangeEvent":
        return cls(type=ChangeEventType.FILE_RENAMED, old_name=old_name, new_name=new_name)

    def to_json(self) -> str:
        """Serializes the event to its wire form."""
        data: Dict[str, Any] = {"type": self.type.value}
        for key in _REQUIRED_FIELDS[self.type]:
            data[key] = getattr(self, key)
        return json.dumps(data)

    @classmethod
    def from_json(cls, data: str) -> "ChangeEvent":
        """
        Parses a wire frame.

        Raises:
            ValueError: On malformed JSON, unknown ``type`` or missing fields.
        """
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON frame: {e}") from e

        if not isinstance(parsed, dict) or "type" not in parsed:
            raise ValueError("Frame has no 'type' tag")

        try:
            event_type = ChangeEventType(parsed["type"])
        except ValueError:
            raise ValueError(f"Unknown event type: {parsed['type']!r}")

        fields = {}
        for key in _REQUIRED_FIELDS[event_type]:
            value = parsed.get(key)
            if not isinstance(value, str):
                raise ValueError(f"{event_type.value} frame missing '{key}'")
            fields[key] = value

        return cls(type=event_type, **fields)


def client_message(message_type: ClientMessageType) -> str:
    """Builds a client frame."""
    return json.dumps({"type": message_type.value})


class ReconnectPolicy:
    """
    Fixed-delay, unlimited reconnect policy.

    Channel drops are assumed to be transient (store restarting, local
    network hiccup), so the delay never grows and attempts never stop.
    """

    def __init__(self, delay: float = 2.0):
        self.delay = delay
        self.attempts = 0

    def get_delay(self) -> float:
        """Returns the wait before the next attempt."""
        self.attempts += 1
        return self.delay

    def reset(self):
        """Resets the attempt counter after a successful open."""
        self.attempts = 0


__all__ = [
    "ChangeEventType",
    "ClientMessageType",
    "ChangeEvent",
    "client_message",
    "ReconnectPolicy",
]
