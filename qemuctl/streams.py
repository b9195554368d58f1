"""Async streams of QMP messages read line by line from a QEMU monitor."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Generic, TypeVar

from .messages import QmpError, QmpEvent, QmpMessage, QmpReply, QmpUnknown, parse_message

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class QmpMessageStream:
    """Yields one parsed QMP message per JSON line read from ``reader``.

    ``reader`` is any object with an awaitable ``readline()`` returning bytes,
    such as :class:`asyncio.StreamReader`. ``cancel`` is a shared token with
    ``set()`` and ``is_set()``; once it is set the stream yields nothing more.
    Lines that are not JSON are logged and skipped; a read or decoding error
    ends the stream.
    """

    def __init__(self, reader: Any, cancel: Any = None) -> None:
        self.reader = reader
        self.cancel_token = cancel if cancel is not None else asyncio.Event()

    def cancel(self) -> None:
        """Stop the stream and every stream sharing its token."""
        self.cancel_token.set()

    def cancelled(self) -> bool:
        return self.cancel_token.is_set()

    def __aiter__(self) -> QmpMessageStream:
        return self

    async def __anext__(self) -> QmpMessage:
        if self.cancelled():
            raise StopAsyncIteration
        while True:
            line = await self._read_line()
            if line is None:
                raise StopAsyncIteration
            try:
                value = json.loads(line)
            except ValueError as exc:
                logger.error("QmpMessageStream: parse error: %s", exc)
                continue
            return parse_message(value)

    async def _read_line(self) -> str | None:
        try:
            raw = await self.reader.readline()
            if not raw:
                return None
            text = raw.decode("utf-8")
        except (OSError, ValueError) as exc:
            logger.error("QmpMessageStream: read error: %s", exc)
            return None
        if text.endswith("\n"):
            text = text[:-1]
        if text.endswith("\r"):
            text = text[:-1]
        return text


class _FilteredQmpStream(Generic[_T]):
    """A message stream narrowed to one kind of message."""

    _item_type: type = object

    def __init__(self, stream: QmpMessageStream) -> None:
        self.stream = stream

    def __aiter__(self):
        return self

    async def __anext__(self) -> _T:
        async for message in self.stream:
            if isinstance(message, self._item_type):
                return message
        raise StopAsyncIteration


class QmpEventStream(_FilteredQmpStream[QmpEvent]):
    """Only the events of a message stream."""

    _item_type = QmpEvent

    @classmethod
    def from_message_stream(cls, stream: QmpMessageStream) -> QmpEventStream:
        return cls(stream)

    @classmethod
    def from_reader(cls, reader: Any, cancel: Any = None) -> QmpEventStream:
        return cls(QmpMessageStream(reader, cancel))


class QmpReplyStream(_FilteredQmpStream[QmpReply]):
    """Only the successful replies of a message stream."""

    _item_type = QmpReply

    @classmethod
    def from_message_stream(cls, stream: QmpMessageStream) -> QmpReplyStream:
        return cls(stream)

    @classmethod
    def from_reader(cls, reader: Any, cancel: Any = None) -> QmpReplyStream:
        return cls(QmpMessageStream(reader, cancel))


class QmpErrorStream(_FilteredQmpStream[QmpError]):
    """Only the error replies of a message stream."""

    _item_type = QmpError

    @classmethod
    def from_message_stream(cls, stream: QmpMessageStream) -> QmpErrorStream:
        return cls(stream)

    @classmethod
    def from_reader(cls, reader: Any, cancel: Any = None) -> QmpErrorStream:
        return cls(QmpMessageStream(reader, cancel))


class QmpUnknownStream(_FilteredQmpStream[QmpUnknown]):
    """Only the unrecognised messages of a message stream."""

    _item_type = QmpUnknown

    @classmethod
    def from_message_stream(cls, stream: QmpMessageStream) -> QmpUnknownStream:
        return cls(stream)

    @classmethod
    def from_reader(cls, reader: Any, cancel: Any = None) -> QmpUnknownStream:
        return cls(QmpMessageStream(reader, cancel))