"""Notification messages, change sources and validation of notification input."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Union

from .status import ComponentStatus, DataType

NOTIFY_EVENT_MAX_LENGTH = 256
_INTERFACE_LIMIT = 16
_MAC_LENGTH = 17
_STATUS_LIMIT = 32
_WRITE_ID_LIMIT = 16


class NotifyType(Enum):
    """Kinds of notification sent upstream."""

    PARAM_NOTIFY = auto()
    FACTORY_RESET = auto()
    FIRMWARE_UPGRADE = auto()
    CONNECTED_CLIENT_NOTIFY = auto()
    TRANS_STATUS = auto()
    DEVICE_STATUS = auto()


class ChangeSource(IntEnum):
    """Bits of the change-marker (CMC) recording who changed the configuration."""

    FACTORY_DEFAULT = 1 << 0
    ACS = 1 << 1
    WEBPA = 1 << 2
    CLI = 1 << 3
    SNMP = 1 << 4
    FIRMWARE_UPGRADE = 1 << 5
    WEBUI = 1 << 7
    UNKNOWN = 1 << 8
    XPC = 1 << 9


class WriteId(IntEnum):
    """Identifiers of the bus clients that write parameter values."""

    ACS = 0x0001
    WEBPA = 0x0004
    XPC = 0x0010
    CLIENT_TOOL = 0x0020
    SNMP = 0x0040
    WEBUI = 0x0080


_WRITE_ID_SOURCES: dict[int, ChangeSource] = {
    WriteId.ACS: ChangeSource.ACS,
    WriteId.WEBPA: ChangeSource.WEBPA,
    WriteId.XPC: ChangeSource.XPC,
    WriteId.CLIENT_TOOL: ChangeSource.CLI,
    WriteId.SNMP: ChangeSource.SNMP,
    WriteId.WEBUI: ChangeSource.WEBUI,
}

_STATUS_REASONS: dict[int, str] = {
    ComponentStatus.SUCCESS: "Success",
    ComponentStatus.PAM_FAILED: "PAM health timeout",
    ComponentStatus.EPON_FAILED: "EPON health timeout",
    ComponentStatus.CM_FAILED: "CM Agent health timeout",
    ComponentStatus.PSM_FAILED: "PSM health timeout",
    ComponentStatus.WIFI_FAILED: "WiFi health timeout",
}


@dataclass
class ParamNotify:
    """A parameter value change reported by the stack."""

    param_name: str
    old_value: str | None
    new_value: str | None
    type: DataType
    change_source: ChangeSource


@dataclass
class NodeData:
    """A client that connected to or left the device."""

    node_mac_id: str | None = None
    status: str | None = None
    interface: str | None = None
    hostname: str | None = None


@dataclass
class TransData:
    """Completion of a transaction."""

    transaction_id: str | None


@dataclass
class DeviceStatus:
    """The device's operational status after start-up."""

    status: int


NotificationData = Union[ParamNotify, NodeData, TransData, DeviceStatus, None]


@dataclass
class Notification:
    """A notification waiting to be framed and sent."""

    type: NotifyType
    data: NotificationData = None


def map_write_id(write_id: int) -> ChangeSource:
    """Map the writer of a value to the change source recorded in the CMC."""
    return _WRITE_ID_SOURCES.get(write_id, ChangeSource.UNKNOWN)


def component_status_reason(status: int) -> str:
    """Human-readable reason for a component start-up status."""
    return _STATUS_REASONS.get(status, "Failed")


def _size(text: str) -> int:
    return len(text.encode("utf-8"))


def validate_connected_client_data(
    param_name: str, interface: str, mac_id: str, status: str, hostname: str
) -> None:
    """Check the field sizes of a connected-client event; raises ValueError."""
    if _size(param_name) >= NOTIFY_EVENT_MAX_LENGTH:
        raise ValueError("notify_param_name validation failed")
    if _size(interface) >= _INTERFACE_LIMIT:
        raise ValueError("interface_name validation failed")
    if _size(mac_id) != _MAC_LENGTH:
        raise ValueError("mac validation failed")
    if _size(status) >= _STATUS_LIMIT:
        raise ValueError("status validation failed")
    if _size(hostname) >= NOTIFY_EVENT_MAX_LENGTH:
        raise ValueError("hostname validation failed")


def validate_notification_data(param_name: str, write_id: str) -> None:
    """Check the field sizes of a value-change event; raises ValueError."""
    if _size(param_name) >= NOTIFY_EVENT_MAX_LENGTH:
        raise ValueError("notify_param_name validation failed")
    if _size(write_id) > _WRITE_ID_LIMIT:
        raise ValueError("write_id validation failed")