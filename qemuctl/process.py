"""A running QEMU child process."""

from __future__ import annotations

import asyncio
import subprocess

from .launch_args import QemuLaunchArgs


class QemuProcess:
    """Wraps the asyncio child process started for a set of launch arguments."""

    def __init__(self, child: asyncio.subprocess.Process) -> None:
        self.child = child

    @classmethod
    async def launch(cls, args: QemuLaunchArgs) -> QemuProcess:
        """Start the binary with its options and positionals; raise OSError on failure.

        Standard input is closed; standard output and error are inherited.
        """
        words = [word for arg in args.args for word in arg.to_args()]
        words.extend(args.positionals)
        child = await asyncio.create_subprocess_exec(
            args.binary,
            *words,
            stdin=subprocess.DEVNULL,
            stdout=None,
            stderr=None,
        )
        return cls(child)

    async def wait(self) -> int:
        """Wait for the process to exit and return its exit status."""
        return await self.child.wait()

    async def terminate(self) -> None:
        """Kill the process and wait for it to exit."""
        if self.child.returncode is None:
            try:
                self.child.kill()
            except ProcessLookupError:
                pass
        await self.child.wait()

    def is_running(self) -> bool:
        return self.child.returncode is None

    def pid(self) -> int | None:
        """The process id, or None once the process has been reaped."""
        if self.child.returncode is not None:
            return None
        return self.child.pid

    def try_wait_exit_code(self) -> int | None:
        """The exit code if the process has exited normally, else None."""
        code = self.child.returncode
        if code is None or code < 0:
            return None
        return code

    async def read_stdout(self) -> str | None:
        """Read all of standard output, or None if it is not captured."""
        return await self._read_all(self.child.stdout)

    async def read_stderr(self) -> str | None:
        """Read all of standard error, or None if it is not captured."""
        return await self._read_all(self.child.stderr)

    @staticmethod
    async def _read_all(stream: asyncio.StreamReader | None) -> str | None:
        if stream is None:
            return None
        data = await stream.read()
        return data.decode("utf-8")