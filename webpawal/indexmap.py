"""Translation of WiFi instance numbers between WebPA and the device data model."""

from __future__ import annotations

import re

from .status import CcspStatus

_RADIO = "Device.WiFi.Radio"
_DML_NAMES = (_RADIO, "Device.WiFi.SSID", "Device.WiFi.AccessPoint")
_RADIO_OBJECT = "Device.WiFi.Radio."

# (WebPA instance number, data-model instance number)
_RADIO_INDEXES: tuple[tuple[int, int], ...] = (
    (10000, 1),
    (10100, 2),
    (10200, 3),
)
_INTERFACE_INDEXES: tuple[tuple[int, int], ...] = (
    (10001, 1),
    (10002, 3),
    (10003, 5),
    (10004, 7),
    (10005, 9),
    (10006, 11),
    (10007, 13),
    (10008, 15),
    (10101, 2),
    (10102, 4),
    (10103, 6),
    (10104, 8),
    (10105, 10),
    (10106, 12),
    (10107, 14),
    (10108, 16),
    (10201, 17),
    (10202, 18),
    (10203, 19),
    (10204, 20),
    (10205, 21),
    (10206, 22),
    (10207, 23),
    (10208, 24),
)
_INDEX_MAP = _RADIO_INDEXES + _INTERFACE_INDEXES

_INSTANCE = re.compile(r"\s*([+-]?\d+)\s*(\S*)")


class InvalidIndexError(ValueError):
    """A WiFi parameter name carries an instance number with no mapping."""

    message = "Invalid index"
    status = CcspStatus.FAILURE

    def __init__(self, parameter_name: str) -> None:
        super().__init__(self.message)
        self.parameter_name = parameter_name


class InvalidWifiIndexError(InvalidIndexError):
    """An SSID or access point instance number is out of range."""

    message = (
        "Invalid WiFi index, valid range is between 10001-10008, "
        "10101-10108 and 10201-10208"
    )
    status = CcspStatus.ERR_INVALID_WIFI_INDEX


class InvalidRadioIndexError(InvalidIndexError):
    """A radio instance number is not one of the known radios."""

    message = "Invalid Radio index, valid indexes are 10000, 10100 and 10200"
    status = CcspStatus.ERR_INVALID_RADIO_INDEX


def _parse_instance(text: str) -> tuple[int, str]:
    match = _INSTANCE.match(text)
    if match is None:
        return 0, ""
    return int(match.group(1)), match.group(2)


def webpa_to_cpe(parameter_name: str) -> str:
    """Rewrite a WebPA WiFi parameter name to data-model instance numbers.

    Names outside the WiFi radio, SSID and access point tables come back unchanged.
    Raises InvalidRadioIndexError or InvalidWifiIndexError for unmapped instances.
    """
    for dml in _DML_NAMES:
        if not parameter_name.startswith(dml):
            continue
        if len(parameter_name) <= len(dml) + 1:
            return parameter_name
        tail = parameter_name[len(dml):]
        if not tail.startswith("."):
            return parameter_name
        instance, rest = _parse_instance(tail[1:])
        table = _RADIO_INDEXES if dml == _RADIO else _INTERFACE_INDEXES
        for webpa, ccsp in table:
            if webpa == instance:
                return f"{dml}.{ccsp}{rest}"
        if _RADIO_OBJECT in parameter_name:
            raise InvalidRadioIndexError(parameter_name)
        raise InvalidWifiIndexError(parameter_name)
    return parameter_name


def cpe_to_webpa(parameter_name: str) -> str:
    """Rewrite a data-model WiFi parameter name to WebPA instance numbers.

    Names with no matching instance come back unchanged.
    """
    for dml in _DML_NAMES:
        if not parameter_name.startswith(dml):
            continue
        if len(parameter_name) < len(dml) + 1:
            return parameter_name
        tail = parameter_name[len(dml):]
        if tail.startswith("."):
            tail = tail[1:]
        instance, rest = _parse_instance(tail)
        table = _INDEX_MAP if dml == _RADIO else _INTERFACE_INDEXES
        for webpa, ccsp in table:
            if ccsp == instance:
                return f"{dml}.{webpa}{rest}"
        return parameter_name
    return parameter_name


def mac_to_lower(mac: str) -> str:
    """Drop the colons from a MAC address and lower-case it, keeping at most 31 characters."""
    joined = "".join(part for part in mac[:31].split(":") if part)[:31]
    return "".join(ch.lower() if "A" <= ch <= "Z" else ch for ch in joined)