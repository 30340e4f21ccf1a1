"""In-process command bus shared by the list, board and form views."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

Handler = Callable[[Any], None]


@dataclass(frozen=True)
class OpenProspectForm:
    """Ask the form view to open; ``prospect_id`` None means a new prospect."""

    prospect_id: str | None = None


@dataclass(frozen=True)
class ProspectSaved:
    prospect_id: str
    changed_fields: tuple[str, ...] = field(default_factory=tuple)
    warning: str | None = None


@dataclass(frozen=True)
class StageMoved:
    prospect_id: str
    previous_stage: str
    new_stage: str
    warning: str | None = None


class CommandBus:
    """Dispatch commands to handlers subscribed by command type, in subscription order."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)
        self._lock = Lock()

    def subscribe(self, command_type: type, handler: Handler) -> None:
        with self._lock:
            self._handlers[command_type].append(handler)

    def unsubscribe(self, command_type: type, handler: Handler) -> None:
        with self._lock:
            handlers = self._handlers.get(command_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def dispatch(self, command: Any) -> int:
        """Deliver ``command``; returns how many handlers received it."""
        with self._lock:
            handlers = list(self._handlers.get(type(command), []))
        for handler in handlers:
            handler(command)
        return len(handlers)
