"""The notification task: start-up notifications, initial notify attributes and the event loop."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable

from .bus import Bus, BusError, ParameterValue, get_parameter_value, set_parameter_value
from .config import WEBPA_CFG_FILE, WebpaConfig
from .dispatch import (
    INITIAL_NOTIFY_RETRY_COUNT,
    NotificationQueue,
    initial_notify_delays,
    notify_param_list,
)
from .indexmap import mac_to_lower
from .messages import (
    DeviceStatus,
    NodeData,
    Notification,
    NotifyType,
    ParamNotify,
    TransData,
    map_write_id,
)
from .notification import PARAM_CID, NotificationProcessor, Outgoing
from .status import DataType, WdmpStatus

log = logging.getLogger(__name__)

DEVICE_MAC = "Device.DeviceInfo.X_COMCAST-COM_CM_MAC"
PARAM_FIRMWARE_VERSION = "Device.DeviceInfo.X_CISCO_COM_FirmwareName"
FP_PARAM = "Device.DeviceInfo.X_RDKCENTRAL-COM_DeviceFingerPrint.Enable"
DEVICE_MANAGEABLE_PARAM = (
    "Device.DeviceInfo.X_RDKCENTRAL-COM_xOpsDeviceMgmt.RPC.DeviceManageableNotification"
)

FACTORY_RESET_NOTIFY_MAX_RETRY_COUNT = 8
BACKOFF_MAX_RETRY_SEC = 512
_CLOUD_SYNC_BASE = 120
_MAC_RETRIES = 5
_MAC_START_EXPONENT = 2
_EVENT_POLL = 0.1

Sleep = Callable[[float], object]


class NotifyTask:
    """Sends the start-up notifications and forwards queued events upstream."""

    def __init__(self, bus: Bus, config_path: str | Path = WEBPA_CFG_FILE, sleep: Sleep = time.sleep) -> None:
        self.bus = bus
        self.config_path = Path(config_path)
        self.sleep = sleep
        self.clock: Callable[[], float] = time.time
        self.config = WebpaConfig()
        self.queue = NotificationQueue()
        self.processor = NotificationProcessor(bus)
        self.stop_event = threading.Event()
        self.mesh_enabled = False
        self.system_ready_time: str | None = None
        self._mac_lock = threading.Lock()
        self._cloud_thread: threading.Thread | None = None

    @property
    def device_mac(self) -> str:
        return self.processor.device_mac

    @device_mac.setter
    def device_mac(self, value: str) -> None:
        self.processor.device_mac = value

    def run(self, device_status: int) -> None:
        """Run the whole task; returns once ``stop_event`` is set and the queue is drained."""
        self.fetch_device_mac()
        self.config = WebpaConfig.load(self.config_path)
        self.processor.process(Notification(NotifyType.DEVICE_STATUS, DeviceStatus(device_status)))
        self.send_factory_reset()
        self._cloud_thread = threading.Thread(target=self.factory_reset_cloud_sync, daemon=True)
        self._cloud_thread.start()
        self.send_firmware_upgrade()
        self.set_initial_notify()
        self.handle_events(self.stop_event)
        log.debug("notifyTask ended")

    def fetch_device_mac(self) -> str:
        """Read the device MAC once, retrying with back-off; returns it, or "" on failure."""
        with self._mac_lock:
            if self.device_mac:
                return self.device_mac
            exponent = _MAC_START_EXPONENT
            retries = 0
            while True:
                delay = 2**exponent - 1
                mac = get_parameter_value(self.bus, DEVICE_MAC)
                if mac:
                    self.device_mac = mac_to_lower(mac)
                    log.info("deviceMAC: %s", self.device_mac)
                    return self.device_mac
                log.error("Failed to GetValue for MAC. Retrying in %d seconds", delay)
                self.sleep(delay)
                exponent += 1
                retries += 1
                if retries > _MAC_RETRIES:
                    return ""

    def _fingerprint_enabled(self) -> bool | None:
        value = get_parameter_value(self.bus, FP_PARAM)
        if value is None:
            return None
        if value.startswith("true"):
            return True
        if value.startswith("false"):
            return False
        return None

    def set_initial_notify(self, parameters: list[str] | None = None) -> list[str]:
        """Turn notification on for the parameters, retrying failures with back-off.

        Returns the parameters that still failed after the last attempt.
        """
        if parameters is None:
            parameters = notify_param_list(self._fingerprint_enabled(), self.mesh_enabled)
        pending = list(parameters)
        for attempt, delay in enumerate(initial_notify_delays(INITIAL_NOTIFY_RETRY_COUNT)):
            failed = []
            for name in pending:
                try:
                    self.bus.set_attributes([ParameterValue(name, "1", DataType.INT)])
                except BusError as exc:
                    log.error(
                        "Failed to turn notification ON for parameter : %s (%s) Attempt Number: %d",
                        name, exc, attempt + 1,
                    )
                    failed.append(name)
            pending = failed
            if not pending:
                log.info("Successfully set initial notifications")
                return []
            log.info("setInitialNotify backoffRetryTime %d seconds, retry:%d", delay, attempt)
            self.sleep(delay)
        return pending

    def send_factory_reset(self) -> Outgoing | None:
        """Send the factory-reset notification when the device was reset."""
        return self.processor.process(Notification(NotifyType.FACTORY_RESET))

    def send_firmware_upgrade(self) -> Outgoing | None:
        """Notify a firmware upgrade when the running version differs from the recorded one."""
        current = get_parameter_value(self.bus, PARAM_FIRMWARE_VERSION)
        if current is None:
            log.error("Could not GET the current device Firmware version")
            return None
        if self.config.old_firmware_version and self.config.old_firmware_version == current:
            log.info("Current device firmware version %s is same as old firmware version", current)
            return None
        try:
            self.config.update_firmware_version(self.config_path, current)
        except (OSError, ValueError) as exc:
            log.error("Error in adding/updating Firmware details to WebPa config file: %s", exc)
        return self.processor.process(Notification(NotifyType.FIRMWARE_UPGRADE))

    def factory_reset_cloud_sync(self) -> int:
        """Resend the factory-reset notification while the cloud has no config id.

        Returns how many notifications were sent; stops early when ``stop_event`` is set.
        """
        retries = 0
        status = 0
        while not self.stop_event.is_set():
            if retries >= FACTORY_RESET_NOTIFY_MAX_RETRY_COUNT:
                log.error("Max Retransmission limit reached for Factory Reset Notification")
                break
            if status < 0:
                self.sleep(BACKOFF_MAX_RETRY_SEC)
            else:
                self.sleep((1 << retries) * _CLOUD_SYNC_BASE + 1)
            status = self.bus.cloud_status(self.device_mac)
            if status != 1:
                continue
            cid = get_parameter_value(self.bus, PARAM_CID)
            if cid is None:
                log.error("Unable to get dbCID value")
                break
            if cid != "0":
                log.info("dbCID has non-zero value")
                break
            self.processor.process(Notification(NotifyType.FACTORY_RESET))
            retries += 1
            log.info("Factory reset notify retryCount is %d", retries)
        return retries

    def value_changed(
        self,
        name: str,
        old_value: str | None,
        new_value: str | None,
        data_type: DataType,
        write_id: int,
    ) -> None:
        """Queue a parameter value change reported by the stack."""
        change = ParamNotify(name, old_value, new_value, data_type, map_write_id(write_id))
        log.info("Notification Event from stack: Parameter Name: %s, Change Source: %d", name, change.change_source)
        self.queue.put(Notification(NotifyType.PARAM_NOTIFY, change))

    def transaction_status(self, transaction_id: str) -> None:
        """Queue the completion of a transaction."""
        self.queue.put(Notification(NotifyType.TRANS_STATUS, TransData(transaction_id)))

    def connected_client(
        self, mac_id: str | None, status: str | None, interface: str | None, hostname: str | None
    ) -> None:
        """Queue a client connect or disconnect; details are kept only when all are given."""
        node = None
        if None not in (mac_id, status, interface, hostname):
            node = NodeData(mac_id, status, interface, hostname)
        self.queue.put(Notification(NotifyType.CONNECTED_CLIENT_NOTIFY, node))

    def device_manageable(self) -> WdmpStatus:
        """Record the system-ready time in the device-manageable parameter."""
        self.system_ready_time = str(int(self.clock()))
        result = set_parameter_value(self.bus, DEVICE_MANAGEABLE_PARAM, self.system_ready_time, DataType.STRING)
        if result is WdmpStatus.SUCCESS:
            log.info("Device manageable notification processed")
        return result

    def handle_events(self, stop: threading.Event) -> int:
        """Process queued notifications until ``stop`` is set and the queue is empty."""
        processed = 0
        while True:
            notification = self.queue.get(timeout=_EVENT_POLL)
            if notification is None:
                if stop.is_set():
                    return processed
                continue
            self.processor.process(notification)
            processed += 1