"""Framing of notifications into upstream events, updating the change marker on the way."""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Callable, NamedTuple

from .bus import Bus, get_parameter_value, set_parameter_value
from .indexmap import mac_to_lower
from .messages import (
    NOTIFY_EVENT_MAX_LENGTH,
    ChangeSource,
    DeviceStatus,
    NodeData,
    Notification,
    NotifyType,
    ParamNotify,
    TransData,
    component_status_reason,
)
from .status import DataType, WdmpStatus

log = logging.getLogger(__name__)

PARAM_CMC = "Device.DeviceInfo.Webpa.X_COMCAST-COM_CMC"
PARAM_CID = "Device.DeviceInfo.Webpa.X_COMCAST-COM_CID"
PARAM_REBOOT_REASON = "Device.DeviceInfo.X_RDKCENTRAL-COM_LastRebootReason"
PARAM_HOSTS_VERSION = "Device.Hosts.X_RDKCENTRAL-COM_HostVersionId"
PARAM_SYSTEM_TIME = "Device.DeviceInfo.X_RDKCENTRAL-COM_SystemTime"
DEVICE_BOOT_TIME = "Device.DeviceInfo.X_RDKCENTRAL-COM_BootTime"
HOSTS_NAME = "Device.Hosts.Host."
TRANSACTION_ID_KEY = "transaction_uuid"
SYNC_NOTIFICATION = "event:SYNC_NOTIFICATION"
TRANSACTION_STATUS = "event:transaction-status"

_DEVICE_ID_LIMIT = 31
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str | None) -> int:
    match = _LEADING_INT.match(text or "")
    return int(match.group(1)) if match else 0


class Outgoing(NamedTuple):
    """A framed notification: JSON payload, source and destination."""

    payload: str
    source: str
    destination: str


class NotificationProcessor:
    """Turns notifications into events and sends them over the bus."""

    def __init__(self, bus: Bus, device_mac: str = "", clock: Callable[[], int] = time.time_ns) -> None:
        self.bus = bus
        self.device_mac = device_mac
        self.clock = clock

    @property
    def device_id(self) -> str:
        return f"mac:{self.device_mac}"[:_DEVICE_ID_LIMIT]

    def process(self, notification: Notification) -> Outgoing | None:
        """Frame a notification and send it; returns what was sent, or None."""
        outgoing = self.build(notification)
        if outgoing is not None:
            self.bus.send_notification(*outgoing)
        return outgoing

    def build(self, notification: Notification) -> Outgoing | None:
        """Frame a notification, updating the CMC as needed; None when nothing is to be sent."""
        device_id = self.device_id
        payload: dict[str, Any] = {"device_id": device_id}
        kind = notification.type
        data = notification.data

        if kind is NotifyType.PARAM_NOTIFY:
            result = self._param_change(data)
            if result is None:
                return None
            payload["cmc"], cid = result
            payload["cid"] = cid
            destination = SYNC_NOTIFICATION
        elif kind is NotifyType.FACTORY_RESET:
            result = self._factory_reset()
            if result is None:
                return None
            cmc, cid, reason = result
            payload["cmc"] = cmc
            if cid is not None:
                payload["cid"] = cid
            payload["reboot_reason"] = reason if reason is not None else "NULL"
            destination = SYNC_NOTIFICATION
        elif kind is NotifyType.FIRMWARE_UPGRADE:
            result = self._firmware_upgrade()
            if result is None:
                return None
            payload["cmc"], payload["cid"] = result
            destination = SYNC_NOTIFICATION
        elif kind is NotifyType.CONNECTED_CLIENT_NOTIFY:
            destination = self._connected_client(data, device_id, payload)
        elif kind is NotifyType.TRANS_STATUS:
            if not isinstance(data, TransData):
                return None
            payload["state"] = "complete"
            payload[TRANSACTION_ID_KEY] = data.transaction_id if data.transaction_id is not None else "unknown"
            destination = TRANSACTION_STATUS
        elif kind is NotifyType.DEVICE_STATUS:
            destination = self._device_status(data, device_id, payload)
        else:
            return None

        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        return Outgoing(text, device_id, destination)

    def _set_cmc(self, value: int) -> bool:
        return set_parameter_value(self.bus, PARAM_CMC, str(value), DataType.UINT) is WdmpStatus.SUCCESS

    def _param_change(self, data: ParamNotify | Any) -> tuple[int, str] | None:
        if not isinstance(data, ParamNotify):
            return None
        cmc_text = get_parameter_value(self.bus, PARAM_CMC)
        if cmc_text is None:
            log.error("Failed to Get CMC Value, hence ignoring the notification")
            return None
        old_cmc = _atoi(cmc_text)
        new_cmc = old_cmc | int(data.change_source)
        if new_cmc == old_cmc:
            log.info("No change in CMC value, ignoring value change event")
            return None
        if not self._set_cmc(new_cmc):
            log.error("Error in setting new CMC value")
            return None
        cid = get_parameter_value(self.bus, PARAM_CID)
        if cid is None:
            log.error("Failed to Get CID value")
            return None
        return new_cmc, cid

    def _factory_reset(self) -> tuple[int, str | None, str | None] | None:
        cid = get_parameter_value(self.bus, PARAM_CID)
        reason = get_parameter_value(self.bus, PARAM_REBOOT_REASON)
        if reason != "factory-reset" and cid != "0":
            return None
        cmc_text = get_parameter_value(self.bus, PARAM_CMC)
        if cmc_text is None:
            log.error("Failed to Get CMC Value for Factory reset notification")
            return None
        old_cmc = _atoi(cmc_text)
        if old_cmc == ChangeSource.XPC:
            log.info("CMC is %d, hence ignoring the Factory reset notification", int(ChangeSource.XPC))
            return None
        new_cmc = old_cmc | ChangeSource.FACTORY_DEFAULT
        if new_cmc != old_cmc and not self._set_cmc(new_cmc):
            log.error("Error setting CMC value for factory reset")
            return None
        return new_cmc, cid, reason

    def _firmware_upgrade(self) -> tuple[int, str] | None:
        cmc_text = get_parameter_value(self.bus, PARAM_CMC)
        if cmc_text is None:
            log.error("Error dbCMC is NULL!")
            return None
        cid = get_parameter_value(self.bus, PARAM_CID)
        if cid is None:
            log.error("Error dbCID is NULL!")
            return None
        old_cmc = _atoi(cmc_text)
        new_cmc = old_cmc | ChangeSource.FIRMWARE_UPGRADE
        if new_cmc == old_cmc:
            log.info("CMC %d already marks a firmware upgrade, notification not sent", new_cmc)
            return None
        if not self._set_cmc(new_cmc):
            log.error("Error setting CMC value for firmware upgrade")
            return None
        return new_cmc, cid

    def _timestamp(self) -> str:
        stamp = get_parameter_value(self.bus, PARAM_SYSTEM_TIME)
        if stamp is not None:
            return stamp
        seconds, nanos = divmod(self.clock(), 1_000_000_000)
        return f"{seconds}.{nanos:09d}"

    def _connected_client(self, data: NodeData | Any, device_id: str, payload: dict[str, Any]) -> str:
        node = data if isinstance(data, NodeData) else None
        node_mac = None
        node_data = None
        if node is not None:
            length = 0
            if node.status is not None:
                length += len(node.status)
            if node.node_mac_id is not None:
                node_mac = mac_to_lower(node.node_mac_id)
                length += len(node_mac)
            if length > 0:
                status = node.status if node.status is not None else "unknown"
                node_data = f"{status}/unknown/{node_mac if node_mac is not None else 'unknown'}"
        destination = f"event:node-change/{device_id}/{node_data if node_data is not None else 'unknown'}"

        version = get_parameter_value(self.bus, PARAM_HOSTS_VERSION)
        payload["timestamp"] = self._timestamp()

        def field(value: str | None) -> str:
            return value if value is not None else "unknown"

        payload["nodes"] = [
            {
                "name": HOSTS_NAME,
                "version": _atoi(version) if version is not None else 0,
                "node-mac": field(node_mac),
                "interface": field(node.interface if node else None),
                "hostname": field(node.hostname if node else None),
                "status": field(node.status if node else None),
            }
        ]
        return destination

    def _device_status(self, data: DeviceStatus | Any, device_id: str, payload: dict[str, Any]) -> str:
        status = data.status if isinstance(data, DeviceStatus) else 0
        boot_time = get_parameter_value(self.bus, DEVICE_BOOT_TIME)
        boot = boot_time if boot_time is not None else "unknown"
        if status != 0:
            reason = component_status_reason(status)
            destination = f"event:device-status/{device_id}/non-operational/{boot}/{reason}"
            payload["status"] = "non-operational"
            payload["reason"] = reason
        else:
            destination = f"event:device-status/{device_id}/operational/{boot}"
            payload["status"] = "operational"
        payload["boot-time"] = boot
        return destination[: NOTIFY_EVENT_MAX_LENGTH - 1]