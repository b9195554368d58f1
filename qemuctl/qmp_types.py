"""Small value types shared by QMP messages and commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_I64_MIN, _I64_MAX = -(2**63), 2**63 - 1
_I32_MIN, _I32_MAX = -(2**31), 2**31 - 1


def _checked_int(data: dict, key: str, low: int, high: int) -> int:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field `{key}` must be an integer")
    if not low <= value <= high:
        raise ValueError(f"field `{key}` out of range: {value}")
    return value


@dataclass(frozen=True)
class QmpTimestamp:
    """Time at which QEMU emitted an event."""

    seconds: int
    micros: int

    @classmethod
    def from_dict(cls, data: Any) -> QmpTimestamp:
        """Build a timestamp from its wire form; raise ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("timestamp must be a JSON object")
        return cls(
            seconds=_checked_int(data, "seconds", _I64_MIN, _I64_MAX),
            micros=_checked_int(data, "microseconds", _I32_MIN, _I32_MAX),
        )

    def to_dict(self) -> dict[str, int]:
        """Return the wire form of the timestamp."""
        return {"seconds": self.seconds, "microseconds": self.micros}


def is_valid_id(value: Any) -> bool:
    """Tell whether ``value`` can serve as a QMP command id (any JSON value)."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return True
    if isinstance(value, list):
        return all(is_valid_id(item) for item in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and is_valid_id(v) for k, v in value.items())
    return False