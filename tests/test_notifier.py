import json
import threading

from webpawal.bus import Bus
from webpawal.dispatch import INITIAL_NOTIFY_RETRY_COUNT, initial_notify_delays
from webpawal.messages import ChangeSource, WriteId
from webpawal.notification import (
    PARAM_CID,
    PARAM_CMC,
    PARAM_REBOOT_REASON,
    SYNC_NOTIFICATION,
    TRANSACTION_STATUS,
)
from webpawal.notifier import (
    BACKOFF_MAX_RETRY_SEC,
    DEVICE_MAC,
    DEVICE_MANAGEABLE_PARAM,
    FACTORY_RESET_NOTIFY_MAX_RETRY_COUNT,
    PARAM_FIRMWARE_VERSION,
    NotifyTask,
)
from webpawal.status import DataType, WdmpStatus

MAC = "AA:BB:CC:00:00:01"


def make_task(tmp_path, values, **bus_options):
    bus = Bus(values=values, **bus_options)
    sleeps = []
    task = NotifyTask(bus, tmp_path / "cfg.json", sleeps.append)
    return task, bus, sleeps


def drain(task):
    stop = threading.Event()
    stop.set()
    return task.handle_events(stop)


def test_fetch_device_mac_lowercases(tmp_path):
    task, _, sleeps = make_task(tmp_path, {DEVICE_MAC: MAC})
    assert task.fetch_device_mac() == "aabbcc000001"
    assert sleeps == []


def test_fetch_device_mac_gives_up_with_growing_backoff(tmp_path):
    task, _, sleeps = make_task(tmp_path, {})
    assert task.fetch_device_mac() == ""
    assert len(sleeps) == 6
    assert sleeps == sorted(sleeps)


def test_value_change_sends_sync_notification(tmp_path):
    task, bus, _ = make_task(tmp_path, {PARAM_CMC: "0", PARAM_CID: "cid-1"})
    task.value_changed("Device.X.Enable", "false", "true", DataType.BOOLEAN, WriteId.WEBPA)
    assert drain(task) == 1
    payload, _, destination = bus.sent[0]
    document = json.loads(payload)
    assert destination == SYNC_NOTIFICATION
    assert document["cmc"] == ChangeSource.WEBPA
    assert document["cid"] == "cid-1"
    assert bus.values[PARAM_CMC].value == str(int(ChangeSource.WEBPA))


def test_transaction_status_is_forwarded(tmp_path):
    task, bus, _ = make_task(tmp_path, {})
    task.transaction_status("abcd-1234-ddfg-6gd7")
    assert drain(task) == 1
    document = json.loads(bus.sent[0][0])
    assert bus.sent[0][2] == TRANSACTION_STATUS
    assert document["transaction_uuid"] == "abcd-1234-ddfg-6gd7"
    assert document["state"] == "complete"


def test_connected_client_event(tmp_path):
    task, bus, _ = make_task(tmp_path, {})
    task.device_mac = "aabbcc000001"
    task.connected_client(MAC, "Connected", "WiFi", "laptop")
    drain(task)
    document = json.loads(bus.sent[0][0])
    node = document["nodes"][0]
    assert bus.sent[0][2].startswith("event:node-change/mac:aabbcc000001/Connected/unknown/")
    assert node["hostname"] == "laptop"
    assert node["interface"] == "WiFi"


def test_connected_client_missing_field_reports_unknown(tmp_path):
    task, bus, _ = make_task(tmp_path, {})
    task.connected_client(MAC, None, "WiFi", "laptop")
    drain(task)
    node = json.loads(bus.sent[0][0])["nodes"][0]
    assert node["hostname"] == "unknown"
    assert bus.sent[0][2].endswith("/unknown")


def test_set_initial_notify_success(tmp_path):
    names = ["Device.A.Enable", "Device.B.Enable"]
    task, bus, sleeps = make_task(tmp_path, {name: "x" for name in names})
    assert task.set_initial_notify(names) == []
    assert bus.attributes == {name: "1" for name in names}
    assert sleeps == []


def test_set_initial_notify_reports_persistent_failures(tmp_path):
    task, bus, sleeps = make_task(tmp_path, {"Device.A.Enable": "x"})
    failed = task.set_initial_notify(["Device.A.Enable", "Device.Missing"])
    assert failed == ["Device.Missing"]
    assert bus.attributes == {"Device.A.Enable": "1"}
    assert sleeps == list(initial_notify_delays(INITIAL_NOTIFY_RETRY_COUNT))


def test_factory_reset_sent_on_reset_reason(tmp_path):
    task, bus, _ = make_task(
        tmp_path, {PARAM_REBOOT_REASON: "factory-reset", PARAM_CMC: "0", PARAM_CID: "0"}
    )
    outgoing = task.send_factory_reset()
    document = json.loads(outgoing.payload)
    assert document["reboot_reason"] == "factory-reset"
    assert document["cmc"] == ChangeSource.FACTORY_DEFAULT
    assert bus.sent == [tuple(outgoing)]


def test_factory_reset_not_sent_without_reset(tmp_path):
    task, bus, _ = make_task(tmp_path, {PARAM_REBOOT_REASON: "reboot", PARAM_CMC: "0", PARAM_CID: "c1"})
    assert task.send_factory_reset() is None
    assert bus.sent == []


def test_firmware_upgrade_records_version_once(tmp_path):
    task, bus, _ = make_task(tmp_path, {PARAM_FIRMWARE_VERSION: "fw-2", PARAM_CMC: "0", PARAM_CID: "c1"})
    (tmp_path / "cfg.json").write_text("{}")
    outgoing = task.send_firmware_upgrade()
    assert json.loads(outgoing.payload)["cmc"] == ChangeSource.FIRMWARE_UPGRADE
    saved = json.loads((tmp_path / "cfg.json").read_text())
    assert saved["oldFirmwareVersion"] == "fw-2"
    assert task.send_firmware_upgrade() is None
    assert len(bus.sent) == 1


def test_firmware_upgrade_without_config_file_still_notifies(tmp_path):
    task, bus, _ = make_task(tmp_path, {PARAM_FIRMWARE_VERSION: "fw-2", PARAM_CMC: "0", PARAM_CID: "c1"})
    assert task.send_firmware_upgrade() is not None
    assert task.config.old_firmware_version == "fw-2"


def test_firmware_upgrade_without_version(tmp_path):
    task, bus, _ = make_task(tmp_path, {PARAM_CMC: "0", PARAM_CID: "c1"})
    assert task.send_firmware_upgrade() is None
    assert bus.sent == []


def test_cloud_sync_resends_until_limit(tmp_path):
    task, bus, _ = make_task(tmp_path, {PARAM_CMC: "1", PARAM_CID: "0"}, cloud_state="online")
    task.device_mac = "aabbcc000001"
    assert task.factory_reset_cloud_sync() == FACTORY_RESET_NOTIFY_MAX_RETRY_COUNT
    assert len(bus.sent) == FACTORY_RESET_NOTIFY_MAX_RETRY_COUNT


def test_cloud_sync_stops_on_nonzero_cid(tmp_path):
    task, bus, _ = make_task(tmp_path, {PARAM_CMC: "1", PARAM_CID: "c1"}, cloud_state="online")
    task.device_mac = "aabbcc000001"
    assert task.factory_reset_cloud_sync() == 0
    assert bus.sent == []


def test_cloud_sync_offline_waits_until_stopped(tmp_path):
    bus = Bus(values={PARAM_CID: "0"})
    sleeps = []
    task = NotifyTask(bus, tmp_path / "cfg.json", None)

    def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) >= 3:
            task.stop_event.set()

    task.sleep = fake_sleep
    task.device_mac = "aabbcc000001"
    assert task.factory_reset_cloud_sync() == 0
    assert sleeps[1:] == [BACKOFF_MAX_RETRY_SEC, BACKOFF_MAX_RETRY_SEC]
    assert bus.sent == []


def test_device_manageable_sets_ready_time(tmp_path):
    task, bus, _ = make_task(tmp_path, {})
    task.clock = lambda: 1700000000.5
    assert task.device_manageable() is WdmpStatus.SUCCESS
    assert bus.values[DEVICE_MANAGEABLE_PARAM].value == task.system_ready_time
    assert task.system_ready_time.isdigit()


def test_run_sends_startup_notifications(tmp_path):
    task, bus, _ = make_task(
        tmp_path,
        {DEVICE_MAC: MAC, PARAM_FIRMWARE_VERSION: "fw-2", PARAM_CMC: "0", PARAM_CID: "c1"},
    )
    task.stop_event.set()
    task.run(0)
    destinations = [destination for _, _, destination in bus.sent]
    assert destinations[0].startswith("event:device-status/mac:aabbcc000001/operational/")
    assert SYNC_NOTIFICATION in destinations
    saved = json.loads((tmp_path / "cfg.json").read_text())
    assert saved["oldFirmwareVersion"] == "fw-2"