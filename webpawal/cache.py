"""Cache of which bus component serves each data-model object."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .bus import Bus, BusError, Component
from .indexmap import webpa_to_cpe

log = logging.getLogger(__name__)

_OBJECT_NAMES = """
    WiFi DeviceInfo GatewayInfo Time UserInterface InterfaceStack Ethernet MoCA PPP IP
    Routing DNS Firewall NAT DHCPv4 DHCPv6 Users UPnP X_CISCO_COM_DDNS X_CISCO_COM_Security
    X_CISCO_COM_DeviceControl Bridging RouterAdvertisement NeighborDiscovery IPv6rd
    X_CISCO_COM_MLD X_CISCO_COM_CableModem X_Comcast_com_ParentalControl
    X_CISCO_COM_Diagnostics X_CISCO_COM_MultiLAN X_COMCAST_COM_GRE X_CISCO_COM_GRE Hosts
    ManagementServer XHosts X_CISCO_COM_MTA X_RDKCENTRAL-COM_XDNS X_RDKCENTRAL-COM_Report
    SelfHeal LogBackup IoT NotifyComponent LogAgent X_RDKCENTRAL-COM_Webpa Webpa
"""

_SUB_OBJECT_NAMES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("DeviceInfo", ("NetworkProperties",)),
    ("MoCA", ("Interface",)),
    ("IP", ("Diagnostics", "Interface")),
    ("DNS", ("Diagnostics", "Client")),
    (
        "DeviceInfo",
        (
            "VendorConfigFile",
            "MemoryStatus",
            "ProcessStatus",
            "Webpa",
            "SupportedDataModel",
            "X_RDKCENTRAL-COM",
            "X_RDKCENTRAL-COM_xOpsDeviceMgmt",
        ),
    ),
    (
        "X_RDKCENTRAL-COM_Report",
        (
            "InterfaceDevicesWifi",
            "RadioInterfaceStatistics",
            "NeighboringAP",
            "NetworkDevicesStatus",
            "NetworkDevicesTraffic",
        ),
    ),
)

OBJECTS: tuple[str, ...] = tuple(f"Device.{name}." for name in _OBJECT_NAMES.split())
SUB_OBJECTS: tuple[str, ...] = tuple(
    f"Device.{parent}.{child}." for parent, children in _SUB_OBJECT_NAMES for child in children
)

CABLE_MODEM_OBJECT = "Device.X_CISCO_COM_CableModem."
RETRY_COUNT = 4
RETRY_INTERVAL = 10
_MAX_ATTEMPTS = 4
_MAX_PARAMETER_NAME = 512


def object_name(parameter_name: str, level: int) -> str:
    """Return the object prefix of a parameter name, e.g. "Device.WiFi." at level 1.

    Returns an empty string when the name is too short for the level.
    """
    text = parameter_name[: _MAX_PARAMETER_NAME - 1]
    dots = [pos for pos, ch in enumerate(text) if ch == "."]
    wanted = max(level, 1)
    if len(dots) <= wanted:
        return ""
    return text[: dots[wanted] + 1]


def object_level(parameter_name: str) -> int:
    """Return how deep a name reaches into the object tree, capped at 2."""
    count = parameter_name.count(".")
    return 2 if count > 2 else count - 1


@dataclass
class ComponentEntry:
    """A cached object with the first component serving it and how many do."""

    object_name: str
    component: Component
    size: int


@dataclass
class ParamGroup:
    """Parameters that go to one component in a single bus call."""

    component: str
    dbus_path: str
    parameters: list[str] = field(default_factory=list)


def prepare_param_groups(
    groups: list[ParamGroup], parameter_name: str, component: str, dbus_path: str
) -> ParamGroup:
    """Add a parameter to the group of its component, creating the group if needed."""
    for group in groups:
        if group.component == component:
            group.parameters.append(parameter_name)
            return group
    group = ParamGroup(component, dbus_path, [parameter_name])
    groups.append(group)
    return group


def _find(entries: Iterable[ComponentEntry], name: str) -> ComponentEntry | None:
    return next((entry for entry in entries if entry.object_name == name), None)


class ComponentCache:
    """Which component serves each top-level object and each listed sub-object."""

    def __init__(self, objects: Iterable[str] = OBJECTS, sub_objects: Iterable[str] = SUB_OBJECTS) -> None:
        self.objects = tuple(objects)
        self.sub_objects = tuple(sub_objects)
        self.entries: list[ComponentEntry] = []
        self.sub_entries: list[ComponentEntry] = []
        self.failed: list[str] = []
        self.failed_sub: list[str] = []
        self.ready = False

    @staticmethod
    def _entry(namespace: str, level: int, components: list[Component]) -> ComponentEntry:
        return ComponentEntry(object_name(namespace, level), components[0], len(components))

    def populate(self, bus: Bus, eth_wan_enabled: bool = False) -> None:
        """Discover the components of all objects, recording those that fail.

        The cache becomes ready once retry_failed has run.
        """
        self.ready = False
        self.entries, self.sub_entries = [], []
        self.failed, self.failed_sub = [], []
        for namespace in self.objects:
            if namespace.startswith(CABLE_MODEM_OBJECT) and eth_wan_enabled:
                log.info("Skipped caching of CM Agent parameter")
                continue
            try:
                components = bus.discover_components(namespace)
            except BusError as exc:
                log.error("Failed to get component info for object %s: %s", namespace, exc)
                self.failed.append(namespace)
            else:
                self.entries.append(self._entry(namespace, 1, components))
        for namespace in self.sub_objects:
            try:
                components = bus.discover_components(namespace)
            except BusError as exc:
                log.error("Failed to get component info for object %s: %s", namespace, exc)
                self.failed_sub.append(namespace)
            else:
                self.sub_entries.append(self._entry(namespace, 2, components))

    def _retry(
        self,
        bus: Bus,
        namespace: str,
        level: int,
        target: list[ComponentEntry],
        sleep: Callable[[float], object],
    ) -> bool:
        attempts = 1
        while True:
            try:
                components = bus.discover_components(namespace)
            except BusError as exc:
                attempts += 1
                log.error("Failed to get component info for object %s: %s, retrying %d", namespace, exc, attempts)
                if attempts == RETRY_COUNT:
                    log.error("Unable to get component for object %s", namespace)
                else:
                    sleep(RETRY_INTERVAL)
                if attempts > _MAX_ATTEMPTS:
                    return False
            else:
                target.append(self._entry(namespace, level, components))
                return True

    def retry_failed(self, bus: Bus, sleep: Callable[[float], object] = time.sleep) -> None:
        """Retry the objects that failed discovery, then mark the cache ready."""
        self.failed = [ns for ns in self.failed if not self._retry(bus, ns, 1, self.entries, sleep)]
        self.failed_sub = [
            ns for ns in self.failed_sub if not self._retry(bus, ns, 2, self.sub_entries, sleep)
        ]
        self.ready = True

    def lookup(self, parameter_name: str) -> ComponentEntry | None:
        """Find the cached entry for a parameter; top-level objects only with one component."""
        if object_level(parameter_name) > 1:
            entry = _find(self.sub_entries, object_name(parameter_name, 2))
            if entry is not None:
                return entry
        entry = _find(self.entries, object_name(parameter_name, 1))
        if entry is not None and entry.size == 1:
            return entry
        return None

    def component_details(self, bus: Bus, parameter_name: str) -> list[Component]:
        """Return the components serving a parameter, from the cache or the bus.

        Raises InvalidIndexError for unmapped WiFi instances and BusError when
        no component supports the parameter.
        """
        entry = self.lookup(parameter_name) if self.ready else None
        if entry is not None and entry.size < 2:
            return [entry.component]
        return bus.discover_components(webpa_to_cpe(parameter_name))