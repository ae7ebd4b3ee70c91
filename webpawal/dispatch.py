"""Parameters watched for value changes, retry back-off, and the notification queue."""

from __future__ import annotations

import threading
from collections import deque
from typing import Iterator

from .messages import Notification


def _by_key(prefix: str, keys: tuple[str, ...], fields: tuple[str, ...]) -> list[str]:
    """Every field of each key in turn."""
    return [f"{prefix}{key}.{name}" for key in keys for name in fields]


def _by_field(prefix: str, keys: tuple[str, ...], fields: tuple[str, ...]) -> list[str]:
    """Each field across every key in turn."""
    return [f"{prefix}{key}.{name}" for name in fields for key in keys]


_AP = "Device.WiFi.AccessPoint."
_SSID = "Device.WiFi.SSID."
_RADIO = "Device.WiFi.Radio."
_INFO = "Device.DeviceInfo."
_LAN = "Device.X_CISCO_COM_DeviceControl.LanManagementEntry.1."
_GRE = "Device.X_COMCAST-COM_GRE.Tunnel.1."
_RADIOS = ("10000", "10100")
_HOTSPOT = ("10003", "10103", "10005", "10105")

NOTIFY_PARAMETERS: tuple[str, ...] = (
    "Device.NotifyComponent.X_RDKCENTRAL-COM_Connected-Client",
    *_by_key("Device.Bridging.Bridge.", ("1.Port.8", "2.Port.2"), ("Enable",)),
    _INFO + "X_COMCAST_COM_xfinitywifiEnable",
    *_by_key(
        _AP,
        ("10001", "10101"),
        (
            "Security.ModeEnabled",
            "Security.X_COMCAST-COM_KeyPassphrase",
            "SSIDAdvertisementEnabled",
            "X_CISCO_COM_MACFilter.Enable",
            "X_CISCO_COM_MACFilter.FilterAsBlackList",
        ),
    ),
    *_by_key(
        _AP,
        ("10002", "10102"),
        (
            "Security.ModeEnabled",
            "Security.X_COMCAST-COM_KeyPassphrase",
            "Security.KeyPassphrase",
            "Security.PreSharedKey",
        ),
    ),
    *_by_key(_RADIO, _RADIOS, ("Enable",)),
    *_by_key(_SSID, ("10001", "10101", "10002", "10102"), ("Enable", "SSID")),
    _LAN + "LanMode",
    *_by_key(
        "Device.X_CISCO_COM_Security.",
        ("Firewall",),
        (
            "FilterAnonymousInternetRequests",
            "FilterHTTP",
            "FilterIdent",
            "FilterMulticast",
            "FilterP2P",
            "FirewallLevel",
        ),
    ),
    *(_LAN + name for name in ("LanIPAddress", "LanSubnetMask")),
    *_by_key("Device.DHCPv4.Server.", ("Pool.1",), ("MinAddress", "MaxAddress", "LeaseTime")),
    *_by_key("Device.NAT.", ("X_CISCO_COM_DMZ",), ("Enable", "InternalIP", "IPv6Host")),
    "Device.NAT.X_Comcast_com_EnablePortMapping",
    *(
        _INFO + "X_RDKCENTRAL-COM_" + name
        for name in (
            "xOpsDeviceMgmt.Mesh.Enable",
            "DeviceFingerPrint.Enable",
            "RFC.Feature.PrivacyProtection.Enable",
            "PrivacyProtection.Activate",
            "CloudUIEnable",
            "AkerEnable",
        )
    ),
    "Device.MoCA.Interface.1.Enable",
    "Device.NotifyComponent.X_RDKCENTRAL-COM_PresenceNotification",
    "Device.WiFi.X_CISCO_COM_FactoryResetRadioAndAp",
    *_by_field(_SSID, _HOTSPOT, ("SSID", "Status")),
    *_by_field(_AP, _HOTSPOT, ("SSIDAdvertisementEnabled", "Security.RadiusServerIPAddr")),
    *_by_field(_SSID, _HOTSPOT, ("BSSID",)),
    *_by_field(_AP, _HOTSPOT, ("Security.ModeEnabled",)),
    *(_GRE + name for name in ("PrimaryRemoteEndpoint", "SecondaryRemoteEndpoint")),
    *_by_field(_RADIO, _RADIOS, ("Channel", "OperatingFrequencyBand", "OperatingChannelBandwidth")),
    *_by_key(_GRE + "Interface.", ("1", "2"), ("VLANID", "LocalInterfaces")),
    # Advanced security parameters stay last: they are dropped when fingerprinting is off.
    *_by_key(_INFO + "X_RDKCENTRAL-COM_AdvancedSecurity.", ("SafeBrowsing", "Softflowd"), ("Enable",)),
)

INITIAL_NOTIFY_RETRY_COUNT = 7
_ADVANCED_SECURITY_COUNT = 2
_START_EXPONENT = 2
_MAX_EXPONENT = 10
_SKIP_AFTER_DELAY = 127


def notify_param_list(fingerprint_enabled: bool | None = None, mesh_enabled: bool = False) -> list[str]:
    """Parameters to turn notification on for.

    ``fingerprint_enabled`` is None when the device does not report it. With
    fingerprinting on, or off with mesh on, the connected-client parameter is
    left out; with fingerprinting off the advanced security parameters are too.
    """
    params = list(NOTIFY_PARAMETERS)
    remove_first = False
    if fingerprint_enabled is True:
        remove_first = True
    else:
        if fingerprint_enabled is False:
            params = params[:-_ADVANCED_SECURITY_COUNT]
        if mesh_enabled:
            remove_first = True
    if remove_first:
        params = params[1:]
    return params


def initial_notify_delays(retry_count: int = INITIAL_NOTIFY_RETRY_COUNT) -> Iterator[int]:
    """Seconds to wait after each failed attempt, for ``retry_count + 1`` attempts.

    Delays grow as 2**c - 1, jump from 127 s to the maximum, and restart after it.
    """
    max_sleep = 2**_MAX_EXPONENT - 1
    exponent = _START_EXPONENT
    delay = 0
    for _ in range(retry_count + 1):
        if delay < max_sleep:
            delay = 2**exponent - 1
        yield delay
        exponent += 1
        if delay == _SKIP_AFTER_DELAY:
            exponent = _MAX_EXPONENT
        elif delay == max_sleep:
            exponent = _START_EXPONENT
            delay = 0


class NotificationQueue:
    """Thread-safe first-in first-out queue of notifications."""

    def __init__(self) -> None:
        self._items: deque[Notification] = deque()
        self._cond = threading.Condition()

    def put(self, notification: Notification) -> None:
        """Append a notification and wake a waiting consumer."""
        with self._cond:
            self._items.append(notification)
            self._cond.notify()

    def get(self, timeout: float | None = None) -> Notification | None:
        """Take the oldest notification, waiting up to ``timeout``; None if none came."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._items, timeout):
                return None
            return self._items.popleft()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)