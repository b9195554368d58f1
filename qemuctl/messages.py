"""QMP messages received from QEMU and their parsing."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any, Union

from .qmp_types import QmpTimestamp

_NO_MATCH = "data did not match any variant of untagged enum QmpMessage"


class QmpKind(enum.Enum):
    """The kind of a QMP message."""

    GREETING = "greeting"
    EVENT = "event"
    REPLY = "reply"
    ERROR = "error"
    UNKNOWN = "unknown"


class _Mismatch(Exception):
    """The value does not have the shape of the tried message kind."""


def _field(obj: Any, key: str) -> Any:
    if not isinstance(obj, dict) or key not in obj:
        raise _Mismatch(key)
    return obj[key]


def _string(value: Any) -> str:
    if not isinstance(value, str):
        raise _Mismatch("expected string")
    return value


def _u64(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2**64:
        raise _Mismatch("expected unsigned integer")
    return value


@dataclass
class QmpSemver:
    """QEMU version numbers."""

    major: int
    minor: int
    micro: int

    def to_dict(self) -> dict[str, int]:
        return {"major": self.major, "minor": self.minor, "micro": self.micro}


@dataclass
class QmpVersion:
    """QEMU version and package string."""

    qemu: QmpSemver
    package: str

    def to_dict(self) -> dict[str, Any]:
        return {"qemu": self.qemu.to_dict(), "package": self.package}


@dataclass
class QmpGreeting:
    """The banner QEMU sends when a QMP connection opens."""

    version_info: QmpVersion
    capability_list: list[str]

    kind = QmpKind.GREETING
    id = None

    @property
    def version(self) -> QmpVersion:
        return self.version_info

    @property
    def capabilities(self) -> list[str]:
        return self.capability_list

    def to_dict(self) -> dict[str, Any]:
        return {
            "QMP": {
                "version": self.version_info.to_dict(),
                "capabilities": list(self.capability_list),
            }
        }


@dataclass
class QmpEvent:
    """An asynchronous event emitted by QEMU."""

    name: str
    data: Any = None
    timestamp: QmpTimestamp | None = None

    kind = QmpKind.EVENT
    id = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.name,
            "data": self.data,
            "timestamp": self.timestamp.to_dict() if self.timestamp else None,
        }


@dataclass
class QmpReply:
    """A successful command reply."""

    result: Any
    id: Any = None

    kind = QmpKind.REPLY

    def to_dict(self) -> dict[str, Any]:
        return {"return": self.result, "id": self.id}


@dataclass
class QmpError:
    """A failed command reply; ``error`` holds class, desc and data."""

    error: dict[str, Any]
    id: Any = None

    kind = QmpKind.ERROR

    @property
    def error_class(self) -> str:
        return self.error["class"]

    @property
    def desc(self) -> str:
        return self.error["desc"]

    @property
    def data(self) -> Any:
        return self.error.get("data")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {"class": self.error_class, "desc": self.desc, "data": self.data},
            "id": self.id,
        }


@dataclass
class QmpUnknown:
    """A message that matched no known shape."""

    raw: Any
    error: str | None = None

    kind = QmpKind.UNKNOWN
    id = None

    def to_dict(self) -> dict[str, Any]:
        return {"raw": self.raw, "error": self.error}


QmpMessage = Union[QmpGreeting, QmpEvent, QmpReply, QmpError, QmpUnknown]


def _as_greeting(value: Any) -> QmpGreeting:
    inner = _field(value, "QMP")
    version = _field(inner, "version")
    qemu = _field(version, "qemu")
    semver = QmpSemver(
        major=_u64(_field(qemu, "major")),
        minor=_u64(_field(qemu, "minor")),
        micro=_u64(_field(qemu, "micro")),
    )
    capabilities = _field(inner, "capabilities")
    if not isinstance(capabilities, list):
        raise _Mismatch("capabilities")
    return QmpGreeting(
        version_info=QmpVersion(qemu=semver, package=_string(_field(version, "package"))),
        capability_list=[_string(c) for c in capabilities],
    )


def _as_event(value: Any) -> QmpEvent:
    name = _string(_field(value, "event"))
    raw_ts = value.get("timestamp")
    timestamp = None
    if raw_ts is not None:
        try:
            timestamp = QmpTimestamp.from_dict(raw_ts)
        except ValueError as exc:
            raise _Mismatch("timestamp") from exc
    return QmpEvent(name=name, data=value.get("data"), timestamp=timestamp)


def _as_reply(value: Any) -> QmpReply:
    return QmpReply(result=_field(value, "return"), id=value.get("id"))


def _as_error(value: Any) -> QmpError:
    body = _field(value, "error")
    error = {
        "class": _string(_field(body, "class")),
        "desc": _string(_field(body, "desc")),
        "data": body.get("data"),
    }
    return QmpError(error=error, id=value.get("id"))


def _as_unknown(value: Any) -> QmpUnknown:
    raw = _field(value, "raw")
    error = value.get("error")
    if error is not None:
        error = _string(error)
    return QmpUnknown(raw=raw, error=error)


_PARSERS = (_as_greeting, _as_event, _as_reply, _as_error, _as_unknown)


def parse_message(value: Any) -> QmpMessage:
    """Classify a decoded JSON value; anything unrecognised becomes QmpUnknown."""
    for parser in _PARSERS:
        try:
            return parser(value)
        except _Mismatch:
            continue
    return QmpUnknown(raw=value, error=_NO_MATCH)


def parse_line(line: str | bytes) -> QmpMessage:
    """Decode one line of QMP JSON; raise ValueError if it is not JSON."""
    return parse_message(json.loads(line))