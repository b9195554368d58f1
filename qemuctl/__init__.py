"""Launch QEMU virtual machines, build their command lines and talk QMP to them over asyncio."""

__version__ = "0.1.0"