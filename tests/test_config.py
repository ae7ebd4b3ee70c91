import json

import pytest

from webpawal.config import FIRMWARE_KEY, WebpaConfig


def test_load_missing_file_creates_empty_object(tmp_path):
    path = tmp_path / "webpa_cfg.json"
    config = WebpaConfig.load(path)
    assert config.old_firmware_version == ""
    assert path.read_text() == "{\n}"


def test_load_in_missing_directory(tmp_path):
    path = tmp_path / "absent" / "webpa_cfg.json"
    config = WebpaConfig.load(path)
    assert config.old_firmware_version == ""
    assert not path.exists()


def test_load_reads_firmware_version(tmp_path):
    path = tmp_path / "webpa_cfg.json"
    path.write_text(json.dumps({FIRMWARE_KEY: "fw-build-1"}))
    assert WebpaConfig.load(path).old_firmware_version == "fw-build-1"


def test_load_without_key(tmp_path):
    path = tmp_path / "webpa_cfg.json"
    path.write_text('{"other": "x"}')
    assert WebpaConfig.load(path).old_firmware_version == ""
    assert json.loads(path.read_text()) == {"other": "x"}


def test_load_corrupt_file_is_replaced(tmp_path):
    path = tmp_path / "webpa_cfg.json"
    path.write_text("{not json")
    assert WebpaConfig.load(path).old_firmware_version == ""
    assert path.read_text() == "{}"


def test_update_adds_key_and_round_trips(tmp_path):
    path = tmp_path / "webpa_cfg.json"
    config = WebpaConfig.load(path)
    config.update_firmware_version(path, "fw-build-2")
    assert config.old_firmware_version == "fw-build-2"
    assert WebpaConfig.load(path).old_firmware_version == "fw-build-2"


def test_update_replaces_and_keeps_other_keys(tmp_path):
    path = tmp_path / "webpa_cfg.json"
    path.write_text(json.dumps({"other": 7, FIRMWARE_KEY: "old"}))
    config = WebpaConfig.load(path)
    config.update_firmware_version(path, "new")
    assert json.loads(path.read_text()) == {"other": 7, FIRMWARE_KEY: "new"}


def test_update_missing_file_raises_but_updates_memory(tmp_path):
    path = tmp_path / "absent.json"
    config = WebpaConfig("old")
    with pytest.raises(OSError):
        config.update_firmware_version(path, "new")
    assert config.old_firmware_version == "new"
    assert not path.exists()


def test_update_corrupt_file_raises(tmp_path):
    path = tmp_path / "webpa_cfg.json"
    path.write_text("garbage")
    config = WebpaConfig()
    with pytest.raises(ValueError):
        config.update_firmware_version(path, "new")
    assert path.read_text() == "garbage"
    assert config.old_firmware_version == "new"