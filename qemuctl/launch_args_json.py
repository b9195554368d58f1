"""JSON documents that hold a set of QEMU launch arguments."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .launch_args import QemuLaunchArgs


@dataclass
class QemuLaunchArgsJson:
    """Launch arguments wrapped under the ``qemuLaunchArgs`` key."""

    args: QemuLaunchArgs

    def to_dict(self) -> dict[str, Any]:
        return {"qemuLaunchArgs": self.args.to_dict()}

    @classmethod
    def from_dict(cls, data: Any) -> QemuLaunchArgsJson:
        if not isinstance(data, dict):
            raise ValueError("document must be a JSON object")
        if "qemuLaunchArgs" not in data:
            raise ValueError("missing field `qemuLaunchArgs`")
        return cls(QemuLaunchArgs.from_dict(data["qemuLaunchArgs"]))

    def to_json_string(self, pretty: bool = False) -> str:
        if pretty:
            return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    def to_json_bytes(self, pretty: bool = False) -> bytes:
        return self.to_json_string(pretty).encode("utf-8")

    @classmethod
    def from_json_str(cls, text: str) -> QemuLaunchArgsJson:
        """Parse a document; raise ValueError if it is not valid."""
        return cls.from_dict(json.loads(text))

    @classmethod
    def from_json_bytes(cls, data: bytes) -> QemuLaunchArgsJson:
        return cls.from_json_str(data.decode("utf-8"))

    def save_to_file(self, path: str | Path, pretty: bool = False) -> None:
        Path(path).write_bytes(self.to_json_bytes(pretty))

    @classmethod
    def load_from_file(cls, path: str | Path) -> QemuLaunchArgsJson:
        return cls.from_json_str(Path(path).read_text(encoding="utf-8"))