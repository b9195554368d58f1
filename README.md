# qemuctl

A small asyncio library for starting QEMU virtual machines and controlling
them over the QEMU Machine Protocol (QMP). It has no dependencies outside the
standard library.

## Installation

```
pip install qemuctl
```

## Modules

| Module | Contents |
| --- | --- |
| `qemuctl.launch_args` | `QemuArg`, `ArgKind`, `QemuLaunchArgs`, `CommandLineError` |
| `qemuctl.launch_args_json` | `QemuLaunchArgsJson` |
| `qemuctl.process` | `QemuProcess` |
| `qemuctl.vm` | `VmInstance`, `VmController`, `VmManager`, `VmNotRunningError` |
| `qemuctl.commands` | `QmpCommand`, `QmpSender`, `QmpSendError` and its subclasses |
| `qemuctl.messages` | `QmpKind`, `QmpGreeting`, `QmpEvent`, `QmpReply`, `QmpError`, `QmpUnknown`, `parse_message`, `parse_line` |
| `qemuctl.streams` | `QmpMessageStream`, `QmpEventStream`, `QmpReplyStream`, `QmpErrorStream`, `QmpUnknownStream` |
| `qemuctl.dispatcher` | `QmpDispatcher` |
| `qemuctl.qmp_types` | `QmpTimestamp`, `is_valid_id` |

## Building a command line

A `QemuArg` is a flag (`-enable-kvm`), a key with a value (`-m 2048`) or a key
with a list that is joined with commas (`-drive file=disk.qcow2,format=qcow2`).
`QemuLaunchArgs` holds the binary, the arguments in order and the trailing
positional words. The `with_*` methods return a new object and leave the
original unchanged.

```python
from qemuctl.launch_args import QemuArg, QemuLaunchArgs

args = (
    QemuLaunchArgs("qemu-system-x86_64")
    .with_flag("-enable-kvm")
    .with_key_value("-m", "2048")
    .with_list("-drive", ["file=disk.qcow2", "format=qcow2"])
    .with_positional("extra")
)
print(args.to_args())
# ['qemu-system-x86_64', '-enable-kvm', '-m', '2048', '-drive', 'file=disk.qcow2,format=qcow2', 'extra']
print(args.to_command_line())
# qemu-system-x86_64 -enable-kvm -m 2048 -drive "file=disk.qcow2,format=qcow2" extra
```

`to_command_line` double-quotes a word only when it holds a space, a double
quote or a comma. `QemuArg.to_command_line` quotes every word.

`get_arg`, `remove_arg`, `replace_arg` (removes every argument with the same
key, then appends), `clear_positionals`, `remove_positional` and
`remove_positional_at` edit an existing object in place.

### Parsing

```python
parsed = QemuLaunchArgs.parse_command_line(
    "qemu-system-x86_64 -m 1024 -nographic -drive file=a.img,if=virtio disk.img"
)
print(parsed.get_arg("-m").to_args())        # ['-m', '1024']
print(parsed.get_arg("-nographic").is_flag())  # True
print(parsed.get_arg("-drive").items)        # ('file=a.img', 'if=virtio')
print(parsed.positionals)                    # ['disk.img']
```

The string is split with POSIX shell quoting rules. The first word is the
binary. A word starting with `-` is a flag when the next word also starts
with `-` or there is no next word. If the next word holds `=` or `,`, it is
split on commas into a list. Otherwise it becomes the option's value. Other
words are positionals. An empty command line or an unclosed quote raises
`CommandLineError`, which is a `ValueError`.

## Saving and loading

```python
from qemuctl.launch_args_json import QemuLaunchArgsJson

doc = QemuLaunchArgsJson(args)
doc.save_to_file("vm.json", pretty=True)
loaded = QemuLaunchArgsJson.load_from_file("vm.json")
assert loaded.args == args
```

The document has this shape:

```json
{
  "qemuLaunchArgs": {
    "qemuBinary": "qemu-system-x86_64",
    "launchArguments": [
      {"type": "Flag", "data": "-enable-kvm"},
      {"type": "KeyValue", "data": ["-m", "2048"]},
      {"type": "List", "data": ["-drive", ["file=disk.qcow2", "format=qcow2"]]}
    ],
    "positionalArgs": ["extra"]
  }
}
```

`to_json_string`, `to_json_bytes`, `from_json_str` and `from_json_bytes` work
on strings and bytes. A malformed document raises `ValueError`.

## Running QEMU

`QemuProcess.launch(args)` starts the binary with its arguments. Standard input
is closed, and standard output and standard error are inherited from the
calling process. Because of that, `read_stdout` and `read_stderr` return
`None` for a process started this way. `terminate` kills the process and waits
for it to exit. `is_running`, `pid` and `try_wait_exit_code` report its state.

`VmInstance` holds launch arguments and, once launched, the process. Calling
`wait` before `launch` raises `VmNotRunningError`, which is an `OSError`.

## Talking QMP

`QmpCommand` is an immutable command. `arguments` and `id` are left out of the
JSON when they are `None`. Class methods such as `QmpCommand.query_status()`,
`QmpCommand.quit()` and `QmpCommand.blockdev_add()` build the common commands.

`QmpSender` writes each command as one line of JSON to an asyncio writer. It
raises `QmpSerializationError` when the command cannot be encoded and
`QmpCodecError` when the write fails. Both are subclasses of `QmpSendError`.

`QmpMessageStream` is an async iterator over a reader with an awaitable
`readline()`. It yields one parsed message per line. Lines that are not JSON
are logged and skipped. A read or decoding error, or the end of input, ends
the stream. The cancel token is any object with `set()` and `is_set()`, for
example `asyncio.Event`. Once it is set, every stream that shares it stops.

The filtered streams wrap a message stream and yield only one kind of message:

- `QmpEventStream` yields events.
- `QmpReplyStream` yields successful replies.
- `QmpErrorStream` yields error replies.
- `QmpUnknownStream` yields unrecognised messages.

`parse_message` and `parse_line` sort a value into `QmpGreeting`, `QmpEvent`,
`QmpReply`, `QmpError` or `QmpUnknown`. Anything that matches none of the
known shapes becomes a `QmpUnknown`, with an error text. Each message has a
`kind` (`QmpKind`) and an `id`.

`QmpDispatcher` calls handlers by event name, by reply id, by error id, or
through one catch-all for unknown messages. A greeting is only logged.
Messages without a matching handler are ignored.

```python
import asyncio
from qemuctl.commands import QmpCommand, QmpSender
from qemuctl.dispatcher import QmpDispatcher
from qemuctl.streams import QmpMessageStream

async def main():
    reader, writer = await asyncio.open_unix_connection("/tmp/qmp.sock")
    sender = QmpSender(writer)
    dispatcher = QmpDispatcher()
    dispatcher.register_event_handler("SHUTDOWN", lambda ev: print("shutdown", ev.data))
    dispatcher.register_reply_handler(1, lambda rep: print("status", rep.result))

    await sender.send(QmpCommand("qmp_capabilities"))
    await sender.send(QmpCommand.query_status().with_id(1))

    async for message in QmpMessageStream(reader, asyncio.Event()):
        dispatcher.dispatch(message)

asyncio.run(main())
```

## Managing machines

`VmController` combines a `VmInstance` with an optional `sender` and `stream`,
which you set yourself. Its methods map to QMP commands:

| Method | Command sent |
| --- | --- |
| `system_powerdown` | `system_powerdown` |
| `quit` | `quit` |
| `reset` | `system_reset` |
| `pause` | `stop` |
| `resume` | `cont` |

These methods raise `QmpNotConnectedError` when no sender is set. Its
`terminate` cancels the stream, then kills the process.

`VmManager` keeps controllers by name. `shutdown_all` terminates each one and
ignores failures of individual machines.

```python
import asyncio
from qemuctl.commands import QmpSender
from qemuctl.streams import QmpMessageStream
from qemuctl.vm import VmManager

async def main():
    manager = VmManager()
    manager.create_vm("web", args)
    vm = manager.get_vm("web")
    await vm.launch()
    reader, writer = await asyncio.open_unix_connection("/tmp/qmp.sock")
    vm.sender = QmpSender(writer)
    vm.stream = QmpMessageStream(reader, asyncio.Event())
    await vm.pause()
    await vm.resume()
    await manager.shutdown_all()

asyncio.run(main())
```

## What it does not do

- There is no command-line program. Everything is used from Python code.
- The package does not open the QMP socket. It does not add a `-qmp` option
  to the launch arguments or perform the capabilities handshake. You connect
  to the socket yourself, as in the examples above, and send
  `qmp_capabilities` like any other command.
- Replies are not matched to the commands that caused them, apart from the
  id-keyed handlers in `QmpDispatcher`.