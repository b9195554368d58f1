import json

import pytest

from qemuctl.commands import (
    QmpCodecError,
    QmpCommand,
    QmpNotConnectedError,
    QmpSendError,
    QmpSender,
    QmpSerializationError,
)


class FakeWriter:
    def __init__(self, fail=False):
        self.data = b""
        self.fail = fail
        self.drains = 0

    def write(self, chunk):
        self.data += chunk

    async def drain(self):
        self.drains += 1
        if self.fail:
            raise ConnectionResetError("peer gone")


@pytest.mark.parametrize(
    "factory, name",
    [
        (QmpCommand.quit, "quit"),
        (QmpCommand.system_powerdown, "system_powerdown"),
        (QmpCommand.stop, "stop"),
        (QmpCommand.cont, "cont"),
        (QmpCommand.system_reset, "system_reset"),
        (QmpCommand.eject, "eject"),
        (QmpCommand.savevm, "savevm"),
        (QmpCommand.loadvm, "loadvm"),
        (QmpCommand.migrate, "migrate"),
        (QmpCommand.migrate_cancel, "migrate_cancel"),
        (QmpCommand.blockdev_add, "blockdev-add"),
        (QmpCommand.blockdev_del, "blockdev-del"),
        (QmpCommand.device_add, "device_add"),
        (QmpCommand.device_del, "device_del"),
        (QmpCommand.query_status, "query-status"),
        (QmpCommand.query_version, "query-version"),
        (QmpCommand.query_commands, "query-commands"),
        (QmpCommand.query_events, "query-events"),
    ],
)
def test_constructors(factory, name):
    cmd = factory()
    assert cmd.execute == name
    assert cmd.to_dict() == {"execute": name}


def test_wire_form_omits_absent_fields():
    assert QmpCommand.quit().to_json() == '{"execute":"quit"}'


def test_with_arguments_and_id():
    cmd = QmpCommand.device_add().with_arguments({"driver": "virtio-net"}).with_id(7)
    assert cmd.to_dict() == {
        "execute": "device_add",
        "arguments": {"driver": "virtio-net"},
        "id": 7,
    }
    assert json.loads(cmd.to_json()) == cmd.to_dict()


def test_builders_do_not_mutate():
    base = QmpCommand.stop()
    base.with_id("x")
    assert base.id is None
    assert base == QmpCommand("stop")


@pytest.mark.asyncio
async def test_sender_writes_line():
    writer = FakeWriter()
    cmd = QmpCommand.query_status().with_id("q1")
    await QmpSender(writer).send(cmd)
    assert writer.data == (cmd.to_json() + "\n").encode()
    assert json.loads(writer.data) == cmd.to_dict()
    assert writer.drains == 1


@pytest.mark.asyncio
async def test_sender_accepts_plain_values():
    writer = FakeWriter()
    await QmpSender(writer).send({"execute": "qmp_capabilities"})
    assert json.loads(writer.data) == {"execute": "qmp_capabilities"}
    assert writer.data.endswith(b"\n")


@pytest.mark.asyncio
async def test_sender_serialization_error():
    writer = FakeWriter()
    with pytest.raises(QmpSerializationError) as info:
        await QmpSender(writer).send({"x": object()})
    assert isinstance(info.value, QmpSendError)
    assert str(info.value).startswith("Serialization error: ")
    assert writer.data == b""


@pytest.mark.asyncio
async def test_sender_codec_error():
    with pytest.raises(QmpCodecError) as info:
        await QmpSender(FakeWriter(fail=True)).send(QmpCommand.quit())
    assert str(info.value).startswith("Codec error: ")
    assert isinstance(info.value.__cause__, ConnectionResetError)


def test_not_connected_message():
    err = QmpNotConnectedError()
    assert str(err) == "QMP not connected"
    assert isinstance(err, QmpSendError)