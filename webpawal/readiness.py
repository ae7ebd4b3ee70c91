"""Waiting for the device's components and the system to become ready."""

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Callable

from .bus import Bus, BusError, get_parameter_value
from .status import ComponentStatus

log = logging.getLogger(__name__)

PAM_COMPONENT = "com.cisco.spvtg.ccsp.pam"
PAM_DBUS_PATH = "/com/cisco/spvtg/ccsp/pam"
EPON_COMPONENT = "com.cisco.spvtg.ccsp.epon"
EPON_DBUS_PATH = "/com/cisco/spvtg/ccsp/epon"
CM_COMPONENT = "com.cisco.spvtg.ccsp.cm"
CM_DBUS_PATH = "/com/cisco/spvtg/ccsp/cm"
PSM_COMPONENT = "com.cisco.spvtg.ccsp.psm"
PSM_DBUS_PATH = "/com/cisco/spvtg/ccsp/PSM"
WIFI_COMPONENT = "com.cisco.spvtg.ccsp.wifi"
WIFI_DBUS_PATH = "/com/cisco/spvtg/ccsp/wifi"
ETHAGENT_COMPONENT = "com.cisco.spvtg.ccsp.ethagent"
ETHAGENT_DBUS_PATH = "/com/cisco/spvtg/ccsp/ethagent"
ETH_WAN_STATUS_PARAM = "Device.Ethernet.X_RDKCENTRAL-COM_WAN.Enabled"

CACHE_READY_MARKER = "/var/tmp/cacheready"

HEALTH_GREEN = "Green"
HEALTH_RETRY_INTERVAL = 5
MAX_HEALTH_ATTEMPTS = 60
READY_RETRIES = 3

# Polling of the system-ready marker: every 5 s, asking the registrar every 24 polls,
# giving up once 84 polls have gone by at such a check.
_READY_POLL_INTERVAL = 5
_READY_QUERY_EVERY = 24
_READY_GIVE_UP_AFTER = 84

Sleep = Callable[[float], object]


class Platform(str, Enum):
    """Device families that differ in which components must be up."""

    BROADBAND = "broadband"
    EPON = "epon"
    EMULATOR = "emulator"


def check_component_health(bus: Bus, component: str, dbus_path: str) -> str:
    """Return the health string ("Green", "Red", ...) reported by a component.

    Raises BusError when the component cannot be queried.
    """
    values = bus.get_component_values(component, dbus_path, [f"{component}.Health"])
    return values[0].value


def _probe(bus: Bus, component: str, dbus_path: str) -> tuple[bool, str]:
    try:
        return True, check_component_health(bus, component, dbus_path)
    except BusError as exc:
        log.debug("Health query of %s failed: %s", component, exc)
        return False, ""


def wait_for_component_ready(
    bus: Bus,
    component: str,
    dbus_path: str,
    sleep: Sleep = time.sleep,
    max_attempts: int = MAX_HEALTH_ATTEMPTS,
) -> bool:
    """Poll a component until its health is green.

    Returns True once it is green. When the attempts run out, returns whether
    the last health query itself succeeded, whatever the health it reported.
    """
    failures = 0
    while True:
        reachable, health = _probe(bus, component, dbus_path)
        if reachable and health == HEALTH_GREEN:
            log.info("%s component health is %s, continue", component, health)
            return True
        failures += 1
        if failures > max_attempts:
            log.error("%s component health check failed, continue", component)
            return reachable
        if failures % 5 == 0:
            log.error("%s component health not green, waiting", component)
        sleep(HEALTH_RETRY_INTERVAL)


def check_component_ready(bus: Bus, component: str, dbus_path: str, sleep: Sleep = time.sleep) -> bool:
    """Check a component's health a few times; True when it turned green."""
    retries = 0
    while retries <= READY_RETRIES:
        reachable, health = _probe(bus, component, dbus_path)
        if reachable and health == HEALTH_GREEN:
            log.info("checkComponentReady: %s component health is %s, continue", component, health)
            return True
        retries += 1
        log.error("%s component health not green, retrying %d", component, retries)
        sleep(HEALTH_RETRY_INTERVAL)
    log.error("Proceeding as component %s is not up even after retry", component)
    return False


def check_ethernet_wan_status(bus: Bus, sleep: Sleep = time.sleep) -> bool:
    """Whether the device uses Ethernet WAN, as reported by the Ethernet agent."""
    if not wait_for_component_ready(bus, ETHAGENT_COMPONENT, ETHAGENT_DBUS_PATH, sleep):
        return False
    status = get_parameter_value(bus, ETH_WAN_STATUS_PARAM)
    if status is not None and status.startswith("true"):
        log.info("Ethernet WAN is enabled")
        return True
    return False


def wait_for_operational_ready(
    bus: Bus, sleep: Sleep = time.sleep, platform: Platform | str = Platform.BROADBAND
) -> ComponentStatus:
    """Wait for the core components and report the first one that never came up."""
    platform = Platform(platform)
    if not wait_for_component_ready(bus, PAM_COMPONENT, PAM_DBUS_PATH, sleep):
        return ComponentStatus.PAM_FAILED
    if platform is Platform.EPON:
        if not wait_for_component_ready(bus, EPON_COMPONENT, EPON_DBUS_PATH, sleep):
            return ComponentStatus.EPON_FAILED
    elif platform is Platform.BROADBAND:
        if not check_ethernet_wan_status(bus, sleep):
            if not wait_for_component_ready(bus, CM_COMPONENT, CM_DBUS_PATH, sleep):
                return ComponentStatus.CM_FAILED
    if not wait_for_component_ready(bus, PSM_COMPONENT, PSM_DBUS_PATH, sleep):
        return ComponentStatus.PSM_FAILED
    if not wait_for_component_ready(bus, WIFI_COMPONENT, WIFI_DBUS_PATH, sleep):
        return ComponentStatus.WIFI_FAILED
    return ComponentStatus.SUCCESS


def wait_until_system_ready(
    bus: Bus,
    marker_path: str | Path = CACHE_READY_MARKER,
    on_ready: Callable[[], object] | None = None,
    sleep: Sleep = time.sleep,
) -> bool:
    """Wait until the system is ready, signalled by the registrar or by the marker file.

    When the registrar reports readiness the marker is created and ``on_ready``
    is called. Returns False if waiting gave up.
    """
    marker = Path(marker_path)

    def announce() -> None:
        log.info("Checked CR - System is ready, proceed with component caching")
        try:
            marker.touch()
        except OSError as exc:
            log.error("Could not create %s: %s", marker, exc)
        if on_ready is not None:
            on_ready()

    if bus.is_system_ready():
        announce()
        return True

    wait_time = 0
    total_wait_time = 0
    while not marker.exists():
        log.info("Waiting for system ready signal")
        if wait_time == _READY_QUERY_EVERY:
            wait_time = 0
            if bus.is_system_ready():
                announce()
                return True
            log.info("Queried CR for system ready, it is still not ready")
            if total_wait_time >= _READY_GIVE_UP_AFTER:
                log.info("System still not ready after waiting. Proceeding ...")
                return False
        sleep(_READY_POLL_INTERVAL)
        wait_time += 1
        total_wait_time += 1
    log.info("%s exists, hence can proceed with component caching", marker)
    return True


def time_diff_ms(start_ns: int, finish_ns: int) -> int:
    """Milliseconds between two timestamps in nanoseconds, sub-second part truncated."""
    start_sec, start_frac = divmod(start_ns, 1_000_000_000)
    finish_sec, finish_frac = divmod(finish_ns, 1_000_000_000)
    frac = finish_frac - start_frac
    frac_ms = abs(frac) // 1_000_000
    return (finish_sec - start_sec) * 1000 + (frac_ms if frac >= 0 else -frac_ms)