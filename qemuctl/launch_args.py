"""QEMU command-line arguments: building, parsing and serialising them."""

from __future__ import annotations

import dataclasses
import enum
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable

_WHITESPACE = (" ", "\t", "\n")
_DQ_ESCAPABLE = ("$", "`", '"', "\\")


class CommandLineError(ValueError):
    """A command line could not be parsed."""


class ArgKind(enum.Enum):
    """The shape of a QEMU argument; values are the wire tags."""

    FLAG = "Flag"
    KEY_VALUE = "KeyValue"
    LIST = "List"


@dataclass(frozen=True)
class QemuArg:
    """One QEMU option: a flag, a key with a value, or a key with a list."""

    kind: ArgKind
    key: str
    value: str | None = None
    items: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    @classmethod
    def from_flag(cls, flag: Any) -> QemuArg:
        return cls(ArgKind.FLAG, str(flag))

    @classmethod
    def from_key_value(cls, key: Any, value: Any) -> QemuArg:
        return cls(ArgKind.KEY_VALUE, str(key), value=str(value))

    @classmethod
    def from_list(cls, key: Any, items: Iterable[Any]) -> QemuArg:
        return cls(ArgKind.LIST, str(key), items=tuple(str(item) for item in items))

    def is_flag(self) -> bool:
        return self.kind is ArgKind.FLAG

    def is_key_value(self) -> bool:
        return self.kind is ArgKind.KEY_VALUE

    def is_list(self) -> bool:
        return self.kind is ArgKind.LIST

    def key_equals(self, key: str) -> bool:
        return self.key == key

    def with_key(self, new_key: Any) -> QemuArg:
        return dataclasses.replace(self, key=str(new_key))

    def to_args(self) -> list[str]:
        if self.kind is ArgKind.FLAG:
            return [self.key]
        if self.kind is ArgKind.KEY_VALUE:
            return [self.key, self.value or ""]
        return [self.key, ",".join(self.items)]

    def to_command_line(self) -> str:
        """Every word double-quoted, inner double quotes backslash-escaped."""
        return " ".join('"' + word.replace('"', '\\"') + '"' for word in self.to_args())

    def to_dict(self) -> dict[str, Any]:
        if self.kind is ArgKind.FLAG:
            data: Any = self.key
        elif self.kind is ArgKind.KEY_VALUE:
            data = [self.key, self.value]
        else:
            data = [self.key, list(self.items)]
        return {"type": self.kind.value, "data": data}

    @classmethod
    def from_dict(cls, data: Any) -> QemuArg:
        """Build an argument from its wire form; raise ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("argument must be a JSON object")
        if "type" not in data:
            raise ValueError("missing field `type`")
        try:
            kind = ArgKind(data["type"])
        except ValueError:
            raise ValueError(f"unknown variant {data['type']!r}") from None
        if "data" not in data:
            raise ValueError("missing field `data`")
        payload = data["data"]
        if kind is ArgKind.FLAG:
            return cls.from_flag(_require_str(payload))
        if not isinstance(payload, list) or len(payload) != 2:
            raise ValueError(f"{kind.value} data must be a two-element array")
        key, rest = payload
        if kind is ArgKind.KEY_VALUE:
            return cls.from_key_value(_require_str(key), _require_str(rest))
        if not isinstance(rest, list):
            raise ValueError("List items must be an array")
        return cls.from_list(_require_str(key), [_require_str(item) for item in rest])


def _require_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {value!r}")
    return value


class _State(enum.Enum):
    DELIMITER = enum.auto()
    BACKSLASH = enum.auto()
    UNQUOTED = enum.auto()
    UNQUOTED_BACKSLASH = enum.auto()
    SINGLE_QUOTED = enum.auto()
    DOUBLE_QUOTED = enum.auto()
    DOUBLE_QUOTED_BACKSLASH = enum.auto()
    COMMENT = enum.auto()


_UNCLOSED = (_State.SINGLE_QUOTED, _State.DOUBLE_QUOTED, _State.DOUBLE_QUOTED_BACKSLASH)


def _split_words(text: str) -> list[str]:
    """Split ``text`` into words by POSIX shell quoting rules."""
    words: list[str] = []
    word: list[str] = []
    state = _State.DELIMITER
    for ch in text:
        if state is _State.DELIMITER:
            if ch == "'":
                state = _State.SINGLE_QUOTED
            elif ch == '"':
                state = _State.DOUBLE_QUOTED
            elif ch == "\\":
                state = _State.BACKSLASH
            elif ch in _WHITESPACE:
                pass
            elif ch == "#":
                state = _State.COMMENT
            else:
                word.append(ch)
                state = _State.UNQUOTED
        elif state is _State.BACKSLASH:
            if ch == "\n":
                state = _State.DELIMITER
            else:
                word.append(ch)
                state = _State.UNQUOTED
        elif state is _State.UNQUOTED:
            if ch == "'":
                state = _State.SINGLE_QUOTED
            elif ch == '"':
                state = _State.DOUBLE_QUOTED
            elif ch == "\\":
                state = _State.UNQUOTED_BACKSLASH
            elif ch in _WHITESPACE:
                words.append("".join(word))
                word = []
                state = _State.DELIMITER
            else:
                word.append(ch)
        elif state is _State.UNQUOTED_BACKSLASH:
            if ch != "\n":
                word.append(ch)
            state = _State.UNQUOTED
        elif state is _State.SINGLE_QUOTED:
            if ch == "'":
                state = _State.UNQUOTED
            else:
                word.append(ch)
        elif state is _State.DOUBLE_QUOTED:
            if ch == '"':
                state = _State.UNQUOTED
            elif ch == "\\":
                state = _State.DOUBLE_QUOTED_BACKSLASH
            else:
                word.append(ch)
        elif state is _State.DOUBLE_QUOTED_BACKSLASH:
            if ch in _DQ_ESCAPABLE:
                word.append(ch)
            elif ch != "\n":
                word.extend(("\\", ch))
            state = _State.DOUBLE_QUOTED
        elif ch == "\n":
            state = _State.DELIMITER

    if state in _UNCLOSED:
        raise CommandLineError("Tokenization failed: missing closing quote")
    if state in (_State.BACKSLASH, _State.UNQUOTED_BACKSLASH):
        word.append("\\")
        words.append("".join(word))
    elif state is _State.UNQUOTED:
        words.append("".join(word))
    return words


def _shell_escape(word: str) -> str:
    if " " in word or '"' in word or "," in word:
        return '"' + word.replace('"', '\\"') + '"'
    return word


@dataclass
class QemuLaunchArgs:
    """A QEMU binary with its options and trailing positional arguments."""

    binary: str = ""
    args: list[QemuArg] = field(default_factory=list)
    positionals: list[str] = field(default_factory=list)

    def _extended(self, args: Iterable[QemuArg] = (), positionals: Iterable[str] = ()) -> QemuLaunchArgs:
        return dataclasses.replace(
            self,
            args=[*self.args, *args],
            positionals=[*self.positionals, *positionals],
        )

    def with_arg(self, arg: QemuArg) -> QemuLaunchArgs:
        return self._extended(args=[arg])

    def with_flag(self, flag: Any) -> QemuLaunchArgs:
        return self.with_arg(QemuArg.from_flag(flag))

    def with_key_value(self, key: Any, value: Any) -> QemuLaunchArgs:
        return self.with_arg(QemuArg.from_key_value(key, value))

    def with_list(self, key: Any, items: Iterable[Any]) -> QemuLaunchArgs:
        return self.with_arg(QemuArg.from_list(key, items))

    def with_args(self, args: Iterable[QemuArg]) -> QemuLaunchArgs:
        return self._extended(args=args)

    def with_positional(self, value: Any) -> QemuLaunchArgs:
        return self._extended(positionals=[str(value)])

    def with_positionals(self, values: Iterable[str]) -> QemuLaunchArgs:
        return self._extended(positionals=values)

    @classmethod
    def parse_command_line(cls, command_line: str) -> QemuLaunchArgs:
        """Parse a shell-style command line; raise CommandLineError on failure.

        A ``-`` word followed by another ``-`` word or by nothing is a flag; if
        the following word holds ``=`` or ``,`` it is a comma-separated list;
        otherwise it is the option's value. Other words are positionals.
        """
        pending = deque(_split_words(command_line))
        if not pending:
            raise CommandLineError("Empty command line")
        binary = pending.popleft()
        args: list[QemuArg] = []
        positionals: list[str] = []
        while pending:
            token = pending.popleft()
            if not token.startswith("-"):
                positionals.append(token)
            elif not pending or pending[0].startswith("-"):
                args.append(QemuArg.from_flag(token))
            else:
                following = pending.popleft()
                if "=" in following or "," in following:
                    items = [part.strip() for part in following.split(",")]
                    args.append(QemuArg.from_list(token, items))
                else:
                    args.append(QemuArg.from_key_value(token, following))
        return cls(binary=binary, args=args, positionals=positionals)

    def to_args(self) -> list[str]:
        words = [self.binary]
        for arg in self.args:
            words.extend(arg.to_args())
        words.extend(self.positionals)
        return words

    def to_command_line(self) -> str:
        """Words joined by spaces, quoted where they hold a space, quote or comma."""
        return " ".join(_shell_escape(word) for word in self.to_args())

    def get_arg(self, key: str) -> QemuArg | None:
        return next((arg for arg in self.args if arg.key_equals(key)), None)

    def remove_arg(self, key: str) -> None:
        self.args = [arg for arg in self.args if not arg.key_equals(key)]

    def replace_arg(self, new_arg: QemuArg) -> None:
        self.remove_arg(new_arg.key)
        self.args.append(new_arg)

    def clear_positionals(self) -> None:
        self.positionals.clear()

    def remove_positional(self, value: str) -> None:
        self.positionals = [p for p in self.positionals if p != value]

    def remove_positional_at(self, index: int) -> str | None:
        if 0 <= index < len(self.positionals):
            return self.positionals.pop(index)
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "qemuBinary": self.binary,
            "launchArguments": [arg.to_dict() for arg in self.args],
            "positionalArgs": list(self.positionals),
        }

    @classmethod
    def from_dict(cls, data: Any) -> QemuLaunchArgs:
        """Build launch arguments from their wire form; raise ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("launch arguments must be a JSON object")
        for name in ("qemuBinary", "launchArguments", "positionalArgs"):
            if name not in data:
                raise ValueError(f"missing field `{name}`")
        arguments = data["launchArguments"]
        positionals = data["positionalArgs"]
        if not isinstance(arguments, list):
            raise ValueError("`launchArguments` must be an array")
        if not isinstance(positionals, list):
            raise ValueError("`positionalArgs` must be an array")
        return cls(
            binary=_require_str(data["qemuBinary"]),
            args=[QemuArg.from_dict(arg) for arg in arguments],
            positionals=[_require_str(p) for p in positionals],
        )