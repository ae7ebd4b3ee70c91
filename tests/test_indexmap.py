import pytest

from webpawal.indexmap import (
    InvalidIndexError,
    InvalidRadioIndexError,
    InvalidWifiIndexError,
    cpe_to_webpa,
    mac_to_lower,
    webpa_to_cpe,
)
from webpawal.status import CcspStatus, WdmpStatus, map_status

WIFI_MESSAGE = (
    "Invalid WiFi index, valid range is between 10001-10008, 10101-10108 and 10201-10208"
)
RADIO_MESSAGE = "Invalid Radio index, valid indexes are 10000, 10100 and 10200"

SSID_INDEXES = [10001, 10002, 10003, 10004, 10005, 10006, 10007, 10008,
                10101, 10102, 10103, 10104, 10105, 10106, 10107, 10108,
                10201, 10202, 10203, 10204, 10205, 10206, 10207, 10208]
RADIO_INDEXES = [10000, 10100, 10200]


def test_ssid_translation_pinned():
    assert webpa_to_cpe("Device.WiFi.SSID.10001.Enable") == "Device.WiFi.SSID.1.Enable"


def test_radio_translation_pinned():
    assert webpa_to_cpe("Device.WiFi.Radio.10100.Enable") == "Device.WiFi.Radio.2.Enable"


def test_access_point_translation_pinned():
    assert webpa_to_cpe("Device.WiFi.AccessPoint.10201.SSID") == "Device.WiFi.AccessPoint.17.SSID"


@pytest.mark.parametrize("index", SSID_INDEXES)
@pytest.mark.parametrize("prefix", ["Device.WiFi.SSID", "Device.WiFi.AccessPoint"])
def test_interface_round_trip(prefix, index):
    name = f"{prefix}.{index}.Enable"
    translated = webpa_to_cpe(name)
    assert translated != name
    assert translated.startswith(prefix + ".")
    assert translated.endswith(".Enable")
    assert cpe_to_webpa(translated) == name


@pytest.mark.parametrize("index", RADIO_INDEXES)
def test_radio_round_trip(index):
    name = f"Device.WiFi.Radio.{index}.Channel"
    assert cpe_to_webpa(webpa_to_cpe(name)) == name


def test_instance_without_rest_round_trip():
    name = "Device.WiFi.SSID.10005"
    assert cpe_to_webpa(webpa_to_cpe(name)) == name


def test_interface_indexes_map_to_distinct_instances():
    translated = {webpa_to_cpe(f"Device.WiFi.SSID.{i}.X") for i in SSID_INDEXES}
    assert len(translated) == len(SSID_INDEXES)


@pytest.mark.parametrize(
    "name",
    [
        "Device.WiFi.RadioNumberOfEntries",
        "Device.WiFi.SSID.",
        "Device.WiFi.SSID",
        "Device.DeviceInfo.Model",
        "Device.NAT.PortMapping.1.Alias",
    ],
)
def test_names_without_instance_pass_through(name):
    assert webpa_to_cpe(name) == name
    assert cpe_to_webpa(name) == name


def test_invalid_wifi_index():
    with pytest.raises(InvalidWifiIndexError) as info:
        webpa_to_cpe("Device.WiFi.SSID.101101.SSID")
    assert str(info.value) == WIFI_MESSAGE
    assert info.value.parameter_name == "Device.WiFi.SSID.101101.SSID"
    assert info.value.status is CcspStatus.ERR_INVALID_WIFI_INDEX
    assert map_status(info.value.status) is WdmpStatus.ERR_INVALID_WIFI_INDEX


def test_invalid_radio_index():
    with pytest.raises(InvalidRadioIndexError) as info:
        webpa_to_cpe("Device.WiFi.Radio.10001.Enable")
    assert str(info.value) == RADIO_MESSAGE
    assert info.value.status is CcspStatus.ERR_INVALID_RADIO_INDEX
    assert map_status(info.value.status) is WdmpStatus.ERR_INVALID_RADIO_INDEX


def test_non_numeric_instance_is_invalid():
    with pytest.raises(InvalidIndexError):
        webpa_to_cpe("Device.WiFi.AccessPoint.abc.Enable")


def test_already_translated_name_is_invalid_for_webpa():
    with pytest.raises(InvalidWifiIndexError):
        webpa_to_cpe("Device.WiFi.SSID.1.Enable")


def test_cpe_unknown_instance_passes_through():
    name = "Device.WiFi.SSID.99.Enable"
    assert cpe_to_webpa(name) == name


def test_mac_to_lower_invariants():
    result = mac_to_lower("0A:1B:2C:3D:4E:5F")
    assert ":" not in result
    assert result == result.lower()
    assert len(result) == 12
    assert result.upper() == "0A:1B:2C:3D:4E:5F".replace(":", "").upper()


def test_mac_to_lower_is_idempotent():
    once = mac_to_lower("0A:1B:2C:3D:4E:5F")
    assert mac_to_lower(once) == once


def test_mac_to_lower_truncates():
    assert len(mac_to_lower("AB" * 40)) <= 31


def test_mac_to_lower_only_colons():
    assert mac_to_lower(":::") == ""