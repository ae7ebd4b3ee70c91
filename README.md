# webpawal

A library that sits between a WebPA cloud agent and a device's data-model bus.
It has no dependencies outside the standard library.

## Modules

- `webpawal.status`: the result codes `WdmpStatus` and `CcspStatus`, plus
  `ComponentStatus` and `DataType`. `map_status()` turns a bus code into a WebPA
  code. Any code it does not know maps to `WdmpStatus.FAILURE`.
- `webpawal.indexmap`: `webpa_to_cpe()` and `cpe_to_webpa()` convert WiFi
  radio, SSID and access point instance numbers between the cloud-facing form
  (10000, 10001, …) and the device's own form. `mac_to_lower()` removes the
  colons from a MAC address and lower-cases it.
- `webpawal.bus`: `Bus` is an in-memory component bus. It holds a registry of
  namespace prefixes and their `Component`s, plus a store of `ParameterValue`s.
  It records sent notifications in `Bus.sent`. It also has the helpers
  `get_parameter_value()`, `set_parameter_value()` and
  `create_force_sync_json()`. A failed bus call raises `BusError`.
- `webpawal.cache`: `ComponentCache` records which component serves each
  top-level object and each listed second-level object. `object_name()` and
  `object_level()` split parameter names into their object parts.
  `prepare_param_groups()` collects parameters into `ParamGroup`s, one group for
  each component.
- `webpawal.readiness`: health checks (`check_component_health`,
  `check_component_ready`, `wait_for_component_ready`),
  `check_ethernet_wan_status`, `wait_for_operational_ready` (which takes a
  `Platform`), `wait_until_system_ready` (which uses a marker file) and
  `time_diff_ms`.
- `webpawal.config`: `WebpaConfig` loads the JSON config file and updates the
  firmware version stored in it.
- `webpawal.messages`: the types `Notification`, `NotifyType` and
  `ChangeSource`, and the payloads `ParamNotify`, `NodeData`, `TransData` and
  `DeviceStatus`. It also has `map_write_id()`, `component_status_reason()` and
  the validators `validate_connected_client_data()` and
  `validate_notification_data()`, which raise `ValueError`.
- `webpawal.notification`: `NotificationProcessor` turns a notification into
  an `Outgoing` payload, source and destination, updating the change marker
  (CMC) where needed. `process()` also sends the result.
- `webpawal.dispatch`: `NOTIFY_PARAMETERS`, `notify_param_list()`,
  `initial_notify_delays()` and the thread-safe `NotificationQueue`.
- `webpawal.notifier`: `NotifyTask` runs the whole notification workflow.

## The bus

Every call that goes to the device passes through a `Bus`. The class included
here keeps all its state in memory. To connect to a real device, subclass it
and override its methods.

```python
from webpawal.bus import Bus, Component, get_parameter_value
from webpawal.cache import ComponentCache

wifi = Component("eRT.com.cisco.spvtg.ccsp.wifi", "/com/cisco/spvtg/ccsp/wifi")
bus = Bus([("Device.WiFi.", wifi)], {"Device.WiFi.SSID.2.Enable": "true"})

cache = ComponentCache(objects=["Device.WiFi."], sub_objects=[])
cache.populate(bus)
cache.retry_failed(bus)           # marks the cache ready
cache.component_details(bus, "Device.WiFi.SSID.10101.Enable")   # [wifi]
get_parameter_value(bus, "Device.WiFi.SSID.2.Enable")           # "true"
```

`retry_failed()` waits between attempts, 10 seconds by default. To change the
wait, pass a different `sleep` callable.

## Index mapping

```python
from webpawal.indexmap import webpa_to_cpe, cpe_to_webpa

webpa_to_cpe("Device.WiFi.SSID.10101.Enable")   # "Device.WiFi.SSID.2.Enable"
cpe_to_webpa("Device.WiFi.SSID.2.Enable")       # "Device.WiFi.SSID.10101.Enable"
```

An index with no mapping raises `InvalidWifiIndexError` or
`InvalidRadioIndexError`. Both are subclasses of `InvalidIndexError`, which is
a `ValueError`.

## Notifications

```python
from webpawal.messages import Notification, NotifyType, TransData
from webpawal.notification import NotificationProcessor

processor = NotificationProcessor(bus, device_mac="0a0b0c0d0e0f")
sent = processor.process(Notification(NotifyType.TRANS_STATUS, TransData("tx-1")))
sent.destination   # "event:transaction-status"
sent.payload       # '{"device_id":"mac:0a0b0c0d0e0f","state":"complete","transaction_uuid":"tx-1"}'
```

`NotifyTask(bus, config_path)` does the following when `run(device_status)` is
called:

1. reads the device MAC and loads the config file;
2. sends the device-status notification;
3. sends the factory-reset notification, then starts the cloud-sync retry
   thread;
4. sends the firmware-upgrade notification if the firmware version has
   changed;
5. switches on notification for the parameter list;
6. processes queued events until `task.stop_event` is set and the queue is
   empty.

`value_changed()`, `transaction_status()` and `connected_client()` add events
to the queue. `device_manageable()` writes the system-ready time to the device.

## What it does not do

This package is a library. It has no command and no daemon. It does not
connect to a real message bus or to a cloud gateway. `Bus` works only in
memory, and connecting to an actual device is left to a subclass of it.

## Tests

```
pip install .[test]
pytest
```