from yktool.core.yubiotp.client import YubiKey
from yktool.core.yubiotp.config import (
    HmacSha1SlotConfiguration,
    SlotConfiguration,
    YubiOtpSlotConfiguration,
)
from yktool.core.yubiotp.errors import (
    ApplicationNotSupported,
    HmacFailed,
    HmacNotPermittedHere,
    InvalidSlot,
    NoDeviceFound,
    OtpNotPermittedHere,
    OtpReadFailed,
    ProgramFailed,
    SerialUnavailable,
    SlotNotConfigured,
    YubiKeyError,
)
from yktool.core.yubiotp.types import DeviceIdentity, Slot, SlotStatus

__all__ = [
    "ApplicationNotSupported",
    "DeviceIdentity",
    "HmacFailed",
    "HmacNotPermittedHere",
    "HmacSha1SlotConfiguration",
    "InvalidSlot",
    "NoDeviceFound",
    "OtpNotPermittedHere",
    "OtpReadFailed",
    "ProgramFailed",
    "SerialUnavailable",
    "Slot",
    "SlotConfiguration",
    "SlotNotConfigured",
    "SlotStatus",
    "YubiKey",
    "YubiKeyError",
    "YubiOtpSlotConfiguration",
]
