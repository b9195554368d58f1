"""Routes QMP messages to handlers registered at run time."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from .messages import QmpError, QmpEvent, QmpGreeting, QmpReply, QmpUnknown

logger = logging.getLogger(__name__)


def _id_key(id: Any) -> str:
    # Ids may be any JSON value, including unhashable ones.
    return json.dumps(id, sort_keys=True)


class QmpDispatcher:
    """Events are keyed by name; replies and errors by the command id."""

    def __init__(self) -> None:
        self._event_handlers: dict[str, Callable[[QmpEvent], Any]] = {}
        self._reply_handlers: dict[str, Callable[[QmpReply], Any]] = {}
        self._error_handlers: dict[str, Callable[[QmpError], Any]] = {}
        self._unknown_handler: Callable[[QmpUnknown], Any] | None = None

    def register_event_handler(self, event_name: str, handler: Callable[[QmpEvent], Any]) -> None:
        self._event_handlers[event_name] = handler

    def register_reply_handler(self, id: Any, handler: Callable[[QmpReply], Any]) -> None:
        self._reply_handlers[_id_key(id)] = handler

    def register_error_handler(self, id: Any, handler: Callable[[QmpError], Any]) -> None:
        self._error_handlers[_id_key(id)] = handler

    def register_unknown_handler(self, handler: Callable[[QmpUnknown], Any]) -> None:
        self._unknown_handler = handler

    def dispatch(self, message: Any) -> None:
        """Hand ``message`` to its handler; messages with no handler are ignored."""
        if isinstance(message, QmpGreeting):
            logger.info("QEMU greeted us")
        elif isinstance(message, QmpEvent):
            handler = self._event_handlers.get(message.name)
            if handler is not None:
                handler(message)
        elif isinstance(message, QmpReply):
            if message.id is not None:
                handler = self._reply_handlers.get(_id_key(message.id))
                if handler is not None:
                    handler(message)
        elif isinstance(message, QmpError):
            if message.id is not None:
                handler = self._error_handlers.get(_id_key(message.id))
                if handler is not None:
                    handler(message)
        elif isinstance(message, QmpUnknown):
            if self._unknown_handler is not None:
                self._unknown_handler(message)