"""QMP commands and the line-oriented sender that writes them."""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class QmpCommand:
    """A QMP command; ``arguments`` and ``id`` are omitted on the wire when None."""

    execute: str
    arguments: Any = None
    id: Any = None

    def with_arguments(self, arguments: Any) -> QmpCommand:
        return dataclasses.replace(self, arguments=arguments)

    def with_id(self, id: Any) -> QmpCommand:
        return dataclasses.replace(self, id=id)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"execute": self.execute}
        if self.arguments is not None:
            result["arguments"] = self.arguments
        if self.id is not None:
            result["id"] = self.id
        return result

    def to_json(self) -> str:
        return _encode(self.to_dict())

    @classmethod
    def quit(cls) -> QmpCommand:
        return cls("quit")

    @classmethod
    def system_powerdown(cls) -> QmpCommand:
        return cls("system_powerdown")

    @classmethod
    def stop(cls) -> QmpCommand:
        return cls("stop")

    @classmethod
    def cont(cls) -> QmpCommand:
        return cls("cont")

    @classmethod
    def system_reset(cls) -> QmpCommand:
        return cls("system_reset")

    @classmethod
    def eject(cls) -> QmpCommand:
        return cls("eject")

    @classmethod
    def savevm(cls) -> QmpCommand:
        return cls("savevm")

    @classmethod
    def loadvm(cls) -> QmpCommand:
        return cls("loadvm")

    @classmethod
    def migrate(cls) -> QmpCommand:
        return cls("migrate")

    @classmethod
    def migrate_cancel(cls) -> QmpCommand:
        return cls("migrate_cancel")

    @classmethod
    def blockdev_add(cls) -> QmpCommand:
        return cls("blockdev-add")

    @classmethod
    def blockdev_del(cls) -> QmpCommand:
        return cls("blockdev-del")

    @classmethod
    def device_add(cls) -> QmpCommand:
        return cls("device_add")

    @classmethod
    def device_del(cls) -> QmpCommand:
        return cls("device_del")

    @classmethod
    def query_status(cls) -> QmpCommand:
        return cls("query-status")

    @classmethod
    def query_version(cls) -> QmpCommand:
        return cls("query-version")

    @classmethod
    def query_commands(cls) -> QmpCommand:
        return cls("query-commands")

    @classmethod
    def query_events(cls) -> QmpCommand:
        return cls("query-events")


def _encode(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


class QmpSendError(Exception):
    """Base class for failures to send a QMP command."""


class QmpSerializationError(QmpSendError):
    """The command could not be encoded as JSON."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Serialization error: {cause}")
        self.__cause__ = cause


class QmpCodecError(QmpSendError):
    """Writing the encoded line failed."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Codec error: {cause}")
        self.__cause__ = cause


class QmpNotConnectedError(QmpSendError):
    """No QMP connection is available."""

    def __init__(self) -> None:
        super().__init__("QMP not connected")


class QmpSender:
    """Writes commands as newline-terminated JSON to an async writer."""

    def __init__(self, writer: Any) -> None:
        self.writer = writer

    async def send(self, command: Any) -> None:
        """Encode ``command`` (a QmpCommand or any JSON value) and write it."""
        payload = command.to_dict() if isinstance(command, QmpCommand) else command
        try:
            line = _encode(payload)
        except (TypeError, ValueError) as exc:
            raise QmpSerializationError(exc) from exc
        try:
            self.writer.write((line + "\n").encode("utf-8"))
            await self.writer.drain()
        except OSError as exc:
            raise QmpCodecError(exc) from exc