import pytest

from qemuctl.launch_args import QemuLaunchArgs
from qemuctl.launch_args_json import QemuLaunchArgsJson


def _sample():
    return QemuLaunchArgsJson(
        QemuLaunchArgs("qemu-system-x86_64")
        .with_key_value("-m", "2048")
        .with_flag("-enable-kvm")
        .with_list("-drive", ["file=disk.img", "format=qcow2"])
        .with_positional("kernel.img")
    )


def test_compact_wire_form():
    document = QemuLaunchArgsJson(QemuLaunchArgs("qemu"))
    assert document.to_json_string() == (
        '{"qemuLaunchArgs":{"qemuBinary":"qemu","launchArguments":[],"positionalArgs":[]}}'
    )


def test_string_round_trip_compact_and_pretty():
    document = _sample()
    for pretty in (False, True):
        assert QemuLaunchArgsJson.from_json_str(document.to_json_string(pretty)) == document


def test_pretty_output_is_indented():
    text = _sample().to_json_string(pretty=True)
    assert text.startswith('{\n  "qemuLaunchArgs": {')
    assert "\n" not in _sample().to_json_string()


def test_bytes_match_string_and_round_trip():
    document = _sample()
    assert document.to_json_bytes() == document.to_json_string().encode("utf-8")
    assert QemuLaunchArgsJson.from_json_bytes(document.to_json_bytes(pretty=True)) == document


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[]",
        '{"other": {}}',
        '{"qemuLaunchArgs": {"qemuBinary": "qemu"}}',
    ],
)
def test_invalid_documents_are_rejected(text):
    with pytest.raises(ValueError):
        QemuLaunchArgsJson.from_json_str(text)


@pytest.mark.parametrize("pretty", [False, True])
def test_file_round_trip(tmp_path, pretty):
    path = tmp_path / "vm.json"
    document = _sample()
    document.save_to_file(path, pretty)
    assert path.read_bytes() == document.to_json_bytes(pretty)
    assert QemuLaunchArgsJson.load_from_file(path) == document


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        QemuLaunchArgsJson.load_from_file(tmp_path / "absent.json")


def test_load_malformed_file_raises(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{", encoding="utf-8")
    with pytest.raises(ValueError):
        QemuLaunchArgsJson.load_from_file(path)