"""Virtual machines: a launched QEMU process plus its QMP connection."""

from __future__ import annotations

from typing import Iterator

from .commands import QmpCommand, QmpNotConnectedError, QmpSender
from .launch_args import QemuLaunchArgs
from .process import QemuProcess
from .streams import QmpMessageStream


class VmNotRunningError(OSError):
    """The VM has no process to act on."""

    def __init__(self) -> None:
        super().__init__("VM is not running")


class VmInstance:
    """Launch arguments and, once launched, the QEMU process."""

    def __init__(self, args: QemuLaunchArgs) -> None:
        self.args = args
        self.process: QemuProcess | None = None

    async def launch(self) -> None:
        self.process = await QemuProcess.launch(self.args)

    def is_running(self) -> bool:
        return self.process is not None and self.process.is_running()

    def pid(self) -> int | None:
        return self.process.pid() if self.process is not None else None

    async def wait(self) -> int:
        """Wait for the process to exit; raise VmNotRunningError if never launched."""
        if self.process is None:
            raise VmNotRunningError()
        return await self.process.wait()

    async def terminate(self) -> None:
        if self.process is not None:
            await self.process.terminate()


class VmController:
    """A VM instance with an optional QMP sender and message stream."""

    def __init__(self, args: QemuLaunchArgs) -> None:
        self.instance = VmInstance(args)
        self.sender: QmpSender | None = None
        self.stream: QmpMessageStream | None = None

    async def launch(self) -> None:
        await self.instance.launch()

    async def terminate(self) -> None:
        """Cancel the message stream, then kill the process."""
        if self.stream is not None:
            self.stream.cancel()
        await self.instance.terminate()

    async def send_command(self, command: QmpCommand) -> None:
        """Send a command; raise QmpNotConnectedError without a sender."""
        if self.sender is None:
            raise QmpNotConnectedError()
        await self.sender.send(command)

    async def system_powerdown(self) -> None:
        await self.send_command(QmpCommand.system_powerdown())

    async def quit(self) -> None:
        await self.send_command(QmpCommand.quit())

    async def reset(self) -> None:
        await self.send_command(QmpCommand.system_reset())

    async def pause(self) -> None:
        await self.send_command(QmpCommand.stop())

    async def resume(self) -> None:
        await self.send_command(QmpCommand.cont())


class VmManager:
    """A set of named VM controllers."""

    def __init__(self) -> None:
        self._vms: dict[str, VmController] = {}

    def create_vm(self, name: str, args: QemuLaunchArgs) -> None:
        """Add a controller under ``name``, replacing any with that name."""
        self._vms[str(name)] = VmController(args)

    def get_vm(self, name: str) -> VmController | None:
        return self._vms.get(name)

    def items(self) -> Iterator[tuple[str, VmController]]:
        return iter(self._vms.items())

    def names(self) -> list[str]:
        return list(self._vms)

    def remove_vm(self, name: str) -> VmController | None:
        return self._vms.pop(name, None)

    async def shutdown_all(self) -> None:
        """Terminate every VM, ignoring failures of individual VMs."""
        for vm in self._vms.values():
            try:
                await vm.terminate()
            except OSError:
                pass