"""YubiOTP application errors.

Every error is terminal for the operation that raised it; nothing here is
retried. Errors raised on a status word keep it in ``sw``.
"""

from __future__ import annotations


class YubiKeyError(Exception):
    """Base class for YubiOTP application errors."""

    def __init__(self, message: str, sw: int | None = None) -> None:
        super().__init__(message)
        self.sw = sw


class ApplicationNotSupported(YubiKeyError):
    """The card did not accept SELECT of the YubiOTP application."""


class InvalidSlot(YubiKeyError, ValueError):
    """Slot number outside {1, 2}."""


class SlotNotConfigured(YubiKeyError):
    """The slot answered with an empty payload."""


class OtpNotPermittedHere(YubiKeyError):
    """The interface in use does not allow reading the OTP (SW 6985)."""


class OtpReadFailed(YubiKeyError):
    pass


class HmacNotPermittedHere(YubiKeyError):
    """HMAC refused in this mode, e.g. a button press was required (SW 6985)."""


class HmacFailed(YubiKeyError):
    pass


class ProgramFailed(YubiKeyError):
    pass


class SerialUnavailable(YubiKeyError):
    pass


class NoDeviceFound(YubiKeyError):
    """No probed YubiKey matches the selection."""
