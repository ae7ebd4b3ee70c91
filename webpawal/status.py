"""Status codes of the component bus and the data-model layer, and the mapping between them."""

from __future__ import annotations

from enum import IntEnum


class WdmpStatus(IntEnum):
    """Result codes reported to WebPA clients."""

    SUCCESS = 0
    FAILURE = 1
    ERR_TIMEOUT = 2
    ERR_NOT_EXIST = 3
    ERR_INVALID_PARAMETER_NAME = 4
    ERR_INVALID_PARAMETER_TYPE = 5
    ERR_INVALID_PARAMETER_VALUE = 6
    ERR_NOT_WRITABLE = 7
    ERR_SETATTRIBUTE_REJECTED = 8
    ERR_NAMESPACE_OVERLAP = 9
    ERR_UNKNOWN_COMPONENT = 10
    ERR_NAMESPACE_MISMATCH = 11
    ERR_UNSUPPORTED_NAMESPACE = 12
    ERR_DP_COMPONENT_VERSION_MISMATCH = 13
    ERR_INVALID_PARAM = 14
    ERR_UNSUPPORTED_DATATYPE = 15
    ERR_WIFI_BUSY = 16
    ERR_INVALID_WIFI_INDEX = 17
    ERR_INVALID_RADIO_INDEX = 18
    ERR_METHOD_NOT_SUPPORTED = 19
    ERR_SESSION_IN_PROGRESS = 20
    ERR_REQUEST_REJECTED = 21


class CcspStatus(IntEnum):
    """Result codes returned by the component bus."""

    SUCCESS = 100
    FAILURE = 102
    ERR_TIMEOUT = 191
    ERR_NOT_EXIST = 192
    CR_ERR_NAMESPACE_OVERLAP = 201
    CR_ERR_UNKNOWN_COMPONENT = 202
    CR_ERR_NAMESPACE_MISMATCH = 203
    CR_ERR_UNSUPPORTED_NAMESPACE = 204
    CR_ERR_DP_COMPONENT_VERSION_MISMATCH = 205
    CR_ERR_INVALID_PARAM = 206
    CR_ERR_UNSUPPORTED_DATATYPE = 207
    CR_ERR_SESSION_IN_PROGRESS = 208
    ERR_WIFI_BUSY = 503
    ERR_INVALID_WIFI_INDEX = 504
    ERR_INVALID_RADIO_INDEX = 505
    ERR_METHOD_NOT_SUPPORTED = 9000
    ERR_REQUEST_REJECTED = 9001
    ERR_INVALID_PARAMETER_NAME = 9005
    ERR_INVALID_PARAMETER_TYPE = 9006
    ERR_INVALID_PARAMETER_VALUE = 9007
    ERR_NOT_WRITABLE = 9008
    ERR_SETATTRIBUTE_REJECTED = 9009


class ComponentStatus(IntEnum):
    """Outcome of waiting for the device's core components to come up."""

    SUCCESS = 0
    PAM_FAILED = 1
    EPON_FAILED = 2
    CM_FAILED = 3
    PSM_FAILED = 4
    WIFI_FAILED = 5
    ETH_FAILED = 6


class DataType(IntEnum):
    """Data types of data-model parameter values."""

    STRING = 0
    INT = 1
    UINT = 2
    BOOLEAN = 3
    DATETIME = 4
    BASE64 = 5
    LONG = 6
    ULONG = 7
    FLOAT = 8
    DOUBLE = 9
    BYTE = 10
    NONE = 11


_STATUS_MAP: dict[CcspStatus, WdmpStatus] = {
    CcspStatus.SUCCESS: WdmpStatus.SUCCESS,
    CcspStatus.FAILURE: WdmpStatus.FAILURE,
    CcspStatus.ERR_TIMEOUT: WdmpStatus.ERR_TIMEOUT,
    CcspStatus.ERR_NOT_EXIST: WdmpStatus.ERR_NOT_EXIST,
    CcspStatus.ERR_INVALID_PARAMETER_NAME: WdmpStatus.ERR_INVALID_PARAMETER_NAME,
    CcspStatus.ERR_INVALID_PARAMETER_TYPE: WdmpStatus.ERR_INVALID_PARAMETER_TYPE,
    CcspStatus.ERR_INVALID_PARAMETER_VALUE: WdmpStatus.ERR_INVALID_PARAMETER_VALUE,
    CcspStatus.ERR_NOT_WRITABLE: WdmpStatus.ERR_NOT_WRITABLE,
    CcspStatus.ERR_SETATTRIBUTE_REJECTED: WdmpStatus.ERR_SETATTRIBUTE_REJECTED,
    CcspStatus.ERR_REQUEST_REJECTED: WdmpStatus.ERR_REQUEST_REJECTED,
    CcspStatus.CR_ERR_NAMESPACE_OVERLAP: WdmpStatus.ERR_NAMESPACE_OVERLAP,
    CcspStatus.CR_ERR_UNKNOWN_COMPONENT: WdmpStatus.ERR_UNKNOWN_COMPONENT,
    CcspStatus.CR_ERR_NAMESPACE_MISMATCH: WdmpStatus.ERR_NAMESPACE_MISMATCH,
    CcspStatus.CR_ERR_UNSUPPORTED_NAMESPACE: WdmpStatus.ERR_UNSUPPORTED_NAMESPACE,
    CcspStatus.CR_ERR_DP_COMPONENT_VERSION_MISMATCH: WdmpStatus.ERR_DP_COMPONENT_VERSION_MISMATCH,
    CcspStatus.CR_ERR_INVALID_PARAM: WdmpStatus.ERR_INVALID_PARAM,
    CcspStatus.CR_ERR_UNSUPPORTED_DATATYPE: WdmpStatus.ERR_UNSUPPORTED_DATATYPE,
    CcspStatus.ERR_WIFI_BUSY: WdmpStatus.ERR_WIFI_BUSY,
    CcspStatus.ERR_INVALID_WIFI_INDEX: WdmpStatus.ERR_INVALID_WIFI_INDEX,
    CcspStatus.ERR_INVALID_RADIO_INDEX: WdmpStatus.ERR_INVALID_RADIO_INDEX,
    CcspStatus.ERR_METHOD_NOT_SUPPORTED: WdmpStatus.ERR_METHOD_NOT_SUPPORTED,
    CcspStatus.CR_ERR_SESSION_IN_PROGRESS: WdmpStatus.ERR_SESSION_IN_PROGRESS,
}


def map_status(code: int) -> WdmpStatus:
    """Translate a bus result code into a WebPA result code; unknown codes map to FAILURE."""
    try:
        ccsp = CcspStatus(code)
    except ValueError:
        return WdmpStatus.FAILURE
    return _STATUS_MAP.get(ccsp, WdmpStatus.FAILURE)