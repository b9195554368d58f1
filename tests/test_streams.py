import asyncio

import pytest

from qemuctl.messages import QmpError, QmpEvent, QmpKind, QmpReply, QmpUnknown
from qemuctl.streams import (
    QmpErrorStream,
    QmpEventStream,
    QmpMessageStream,
    QmpReplyStream,
    QmpUnknownStream,
)

GREETING = (
    b'{"QMP": {"version": {"qemu": {"major": 8, "minor": 2, "micro": 0}, '
    b'"package": ""}, "capabilities": ["oob"]}}\n'
)
EVENT = b'{"event": "SHUTDOWN", "data": {"guest": true}}\n'
REPLY = b'{"return": {"status": "running"}, "id": 7}\n'
ERROR = b'{"error": {"class": "GenericError", "desc": "boom"}, "id": 8}\n'
UNKNOWN = b"[1, 2]\n"


def _reader(*chunks):
    reader = asyncio.StreamReader()
    for chunk in chunks:
        reader.feed_data(chunk)
    reader.feed_eof()
    return reader


async def _collect(stream):
    return [item async for item in stream]


@pytest.mark.asyncio
async def test_messages_are_yielded_in_order():
    stream = QmpMessageStream(_reader(GREETING, EVENT, REPLY, ERROR))
    kinds = [message.kind for message in await _collect(stream)]
    assert kinds == [QmpKind.GREETING, QmpKind.EVENT, QmpKind.REPLY, QmpKind.ERROR]


@pytest.mark.asyncio
async def test_invalid_and_blank_lines_are_skipped():
    stream = QmpMessageStream(_reader(b"not json\n", EVENT, b"\n"))
    messages = await _collect(stream)
    assert len(messages) == 1
    assert isinstance(messages[0], QmpEvent)
    assert messages[0].name == "SHUTDOWN"


@pytest.mark.asyncio
async def test_crlf_and_final_line_without_newline():
    stream = QmpMessageStream(_reader(b'{"return": {}, "id": 1}\r\n{"return": 2}'))
    messages = await _collect(stream)
    assert [m.result for m in messages] == [{}, 2]
    assert [m.id for m in messages] == [1, None]


@pytest.mark.asyncio
async def test_cancel_before_reading_yields_nothing():
    stream = QmpMessageStream(_reader(EVENT, REPLY))
    stream.cancel()
    assert stream.cancelled() is True
    assert await _collect(stream) == []


@pytest.mark.asyncio
async def test_cancel_midway_stops_stream():
    stream = QmpMessageStream(_reader(EVENT, REPLY))
    first = await stream.__anext__()
    assert isinstance(first, QmpEvent)
    assert stream.cancelled() is False
    stream.cancel()
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()


@pytest.mark.asyncio
async def test_invalid_utf8_ends_stream():
    stream = QmpMessageStream(_reader(EVENT, b"\xff\xfe\n", REPLY))
    messages = await _collect(stream)
    assert len(messages) == 1
    assert isinstance(messages[0], QmpEvent)


@pytest.mark.asyncio
async def test_unrecognised_json_becomes_unknown():
    stream = QmpMessageStream(_reader(UNKNOWN))
    messages = await _collect(stream)
    assert len(messages) == 1
    assert isinstance(messages[0], QmpUnknown)
    assert messages[0].raw == [1, 2]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "stream_class, item_type",
    [
        (QmpEventStream, QmpEvent),
        (QmpReplyStream, QmpReply),
        (QmpErrorStream, QmpError),
        (QmpUnknownStream, QmpUnknown),
    ],
)
async def test_filtered_streams_keep_one_kind(stream_class, item_type):
    reader = _reader(GREETING, EVENT, REPLY, ERROR, UNKNOWN, EVENT, REPLY)
    items = await _collect(stream_class.from_reader(reader, None))
    assert items
    assert all(isinstance(item, item_type) for item in items)


@pytest.mark.asyncio
async def test_event_stream_yields_all_events():
    reader = _reader(EVENT, REPLY, b'{"event": "RESET"}\n')
    events = await _collect(QmpEventStream.from_reader(reader, asyncio.Event()))
    assert [e.name for e in events] == ["SHUTDOWN", "RESET"]


@pytest.mark.asyncio
async def test_reply_stream_preserves_ids():
    reader = _reader(REPLY, ERROR, b'{"return": [], "id": "abc"}\n')
    replies = await _collect(QmpReplyStream.from_reader(reader, None))
    assert [r.id for r in replies] == [7, "abc"]


@pytest.mark.asyncio
async def test_shared_cancel_token_stops_filtered_stream():
    token = asyncio.Event()
    token.set()
    stream = QmpReplyStream.from_reader(_reader(REPLY), token)
    assert await _collect(stream) == []


@pytest.mark.asyncio
async def test_from_message_stream_follows_base_cancellation():
    base = QmpMessageStream(_reader(EVENT))
    events = QmpEventStream.from_message_stream(base)
    base.cancel()
    assert await _collect(events) == []