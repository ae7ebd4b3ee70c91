"""Component bus access: discovery, parameter values, attributes and notifications."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from .status import CcspStatus, DataType, WdmpStatus, map_status

log = logging.getLogger(__name__)

# Parameter values travel through 64-byte buffers, force-sync fields through 32-byte ones.
_VALUE_LIMIT = 63
_FORCE_SYNC_LIMIT = 31


@dataclass(frozen=True)
class Component:
    """A component registered on the bus and the object path it answers on."""

    name: str
    dbus_path: str


@dataclass
class ParameterValue:
    """A named data-model value with its type."""

    name: str
    value: str
    type: DataType = DataType.STRING


class BusError(Exception):
    """A bus call failed; ``status`` holds the bus result code."""

    def __init__(self, status: int, message: str = "") -> None:
        super().__init__(message or f"bus call failed with status {int(status)}")
        self.status = int(status)

    @property
    def wdmp_status(self) -> WdmpStatus:
        """The WebPA result code for this failure."""
        return map_status(self.status)


class Bus:
    """In-memory component bus: a component registry and a parameter store.

    Registrations pair a namespace prefix with the component that serves it.
    """

    def __init__(
        self,
        registrations: Iterable[tuple[str, Component]] = (),
        values: Mapping[str, str | ParameterValue] | None = None,
        *,
        system_ready: bool = False,
        cloud_state: str = "offline",
        read_only: Iterable[str] = (),
    ) -> None:
        self.registrations: list[tuple[str, Component]] = list(registrations)
        self.values: dict[str, ParameterValue] = {}
        for name, value in (values or {}).items():
            if isinstance(value, ParameterValue):
                self.values[name] = value
            else:
                self.values[name] = ParameterValue(name, str(value))
        self.attributes: dict[str, str] = {}
        self.read_only = set(read_only)
        self.system_ready = system_ready
        self.cloud_state = cloud_state
        self.sent: list[tuple[str, str, str]] = []

    def discover_components(self, namespace: str) -> list[Component]:
        """Return the components supporting a namespace, in registration order."""
        found: list[Component] = []
        for prefix, component in self.registrations:
            if namespace.startswith(prefix) or prefix.startswith(namespace):
                if component not in found:
                    found.append(component)
        if not found:
            raise BusError(CcspStatus.CR_ERR_UNSUPPORTED_NAMESPACE, f"no component supports {namespace}")
        return found

    def get_component_values(
        self, component: str, dbus_path: str, names: Iterable[str]
    ) -> list[ParameterValue]:
        """Read values directly from one component."""
        target = Component(component, dbus_path)
        if all(registered != target for _, registered in self.registrations):
            raise BusError(CcspStatus.CR_ERR_UNKNOWN_COMPONENT, f"unknown component {component}")
        result = []
        for name in names:
            if name not in self.values:
                raise BusError(CcspStatus.ERR_INVALID_PARAMETER_NAME, f"unknown parameter {name}")
            result.append(self.values[name])
        return result

    def is_system_ready(self) -> bool:
        """Whether the registrar has announced that the system is ready."""
        return self.system_ready

    def get_values(self, names: Iterable[str]) -> list[ParameterValue]:
        """Read parameter values by name."""
        result = []
        for name in names:
            if name not in self.values:
                raise BusError(CcspStatus.CR_ERR_UNSUPPORTED_NAMESPACE, f"unknown parameter {name}")
            result.append(self.values[name])
        return result

    def set_values(self, params: Iterable[ParameterValue]) -> None:
        """Write parameter values; nothing is written if any is read-only."""
        params = list(params)
        for param in params:
            if param.name in self.read_only:
                raise BusError(CcspStatus.ERR_NOT_WRITABLE, f"{param.name} is not writable")
        for param in params:
            self.values[param.name] = ParameterValue(param.name, param.value, param.type)

    def set_attributes(self, params: Iterable[ParameterValue]) -> None:
        """Set the notification attribute of existing parameters."""
        params = list(params)
        for param in params:
            if param.name not in self.values:
                raise BusError(CcspStatus.CR_ERR_UNSUPPORTED_NAMESPACE, f"unknown parameter {param.name}")
        for param in params:
            self.attributes[param.name] = param.value

    def cloud_status(self, device_mac: str | None) -> int:
        """Return 1 when the device is connected to the cloud, -1 otherwise."""
        if not device_mac:
            return -1
        return 1 if self.cloud_state == "online" else -1

    def send_notification(self, payload: str, source: str, destination: str) -> None:
        """Send a notification upstream."""
        self.sent.append((payload, source, destination))


def get_parameter_value(bus: Bus, name: str) -> str | None:
    """Read one parameter; None when the read fails."""
    try:
        values = bus.get_values([name])
    except BusError as exc:
        log.error("Failed to GetValue for %s: %s", name, exc)
        return None
    return values[0].value[:_VALUE_LIMIT]


def set_parameter_value(bus: Bus, name: str, value: str, data_type: DataType) -> WdmpStatus:
    """Write one parameter and return the WebPA result code."""
    try:
        bus.set_values([ParameterValue(name, value[:_VALUE_LIMIT], data_type)])
    except BusError as exc:
        log.error("Failed to SetValue for %s: %s", name, exc)
        return exc.wdmp_status
    return WdmpStatus.SUCCESS


def create_force_sync_json(value: str | None, transaction_id: str | None) -> str:
    """Build the compact force-sync JSON document."""
    if value is None or transaction_id is None:
        raise ValueError("force sync value and transaction id are required")
    document = {
        "value": value[:_FORCE_SYNC_LIMIT],
        "transaction_id": transaction_id[:_FORCE_SYNC_LIMIT],
    }
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)