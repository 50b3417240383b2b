"""YubiOTP protocol client.

A ``YubiKey`` is bound to one card channel through its ``transmit``
callable. The application can be deselected between calls (for example
when another interface of the key is used), so every public operation
starts by selecting it again. No operation is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from yktool.core.smartcard import APDU, Response
from yktool.core.yubiotp.errors import (
    ApplicationNotSupported,
    HmacFailed,
    HmacNotPermittedHere,
    OtpNotPermittedHere,
    OtpReadFailed,
    ProgramFailed,
    SerialUnavailable,
    SlotNotConfigured,
)
from yktool.core.yubiotp.protocol import (
    CMD_HMAC_1,
    CMD_HMAC_2,
    CMD_SET_CONF_1,
    CMD_SET_CONF_2,
    YubiOTP,
)
from yktool.core.yubiotp.status import Failure, NotPermitted, Success, decode
from yktool.core.yubiotp.types import DeviceIdentity, Slot, SlotStatus

lg = logging.getLogger(__name__)

HMAC_CHALLENGE_SIZE = 64
SERIAL_SIZE = 4

_MODEL_NAMES = {3: "NEO", 4: "4", 5: "5"}


class YubiKey:
    """Client for the YubiOTP application of one YubiKey."""

    def __init__(self, transmit: Callable[[APDU], Response]) -> None:
        self._proto = YubiOTP(transmit)
        self.identity: DeviceIdentity | None = None
        self.status: SlotStatus | None = None

    @classmethod
    def probe(cls, transmit: Callable[[APDU], Response]) -> YubiKey | None:
        """Return a client if the card runs the YubiOTP application, else None.

        Transport errors propagate; only a refused SELECT/STATUS means
        "not a YubiKey".
        """
        key = cls(transmit)
        try:
            key.refresh_status()
        except ApplicationNotSupported as exc:
            lg.debug("not a YubiKey: %s", exc)
            return None
        return key

    @property
    def bound(self) -> bool:
        return self.identity is not None

    def _ensure_selected(self) -> DeviceIdentity:
        resp = self._proto.send_select()
        outcome = decode(resp)
        if not isinstance(outcome, Success):
            raise ApplicationNotSupported(
                f"YubiOTP application not supported (SW={resp.sw:04X})", resp.sw
            )
        identity = DeviceIdentity.from_bytes(outcome.data)
        self.identity = identity
        return identity

    def refresh_status(self) -> tuple[DeviceIdentity, SlotStatus]:
        """Reselect and read version, program sequence and slot flags."""
        self._ensure_selected()
        resp = self._proto.send_status()
        outcome = decode(resp)
        if not isinstance(outcome, Success):
            raise ApplicationNotSupported(
                f"YubiOTP status not available (SW={resp.sw:04X})", resp.sw
            )
        identity = DeviceIdentity.from_bytes(outcome.data[:4])
        status = SlotStatus.from_bytes(outcome.data[4:6])
        self.identity, self.status = identity, status
        lg.debug("status: v%s pgm_seq=%d touch_level=%04X",
                 identity, identity.pgm_seq, status.touch_level)
        return identity, status

    def get_serial(self) -> int:
        self._ensure_selected()
        resp = self._proto.send_get_serial()
        outcome = decode(resp)
        if not isinstance(outcome, Success):
            raise SerialUnavailable(
                f"YubiKey serial number could not be read (SW={resp.sw:04X})", resp.sw
            )
        if len(outcome.data) < SERIAL_SIZE:
            raise SerialUnavailable(
                f"YubiKey serial number truncated: {outcome.data.hex().upper() or '(empty)'}"
            )
        return int.from_bytes(outcome.data[:SERIAL_SIZE], "big")

    def get_otp(self, slot: int) -> str:
        """Read a one-time passcode from a slot, returned as sent by the key."""
        slot = Slot.parse(slot)
        self._ensure_selected()
        resp = self._proto.send_read_otp(slot.index)
        outcome = decode(resp)
        if isinstance(outcome, NotPermitted):
            raise OtpNotPermittedHere(
                "YubiKey does not allow OTP to be extracted in this mode "
                "(e.g. connected over USB)", outcome.sw,
            )
        if isinstance(outcome, Failure):
            raise OtpReadFailed(
                f"YubiKey failed to return an OTP (SW={outcome.sw:04X})", outcome.sw
            )
        if not outcome.data:
            raise SlotNotConfigured(f"YubiKey slot {slot.value} is not configured for OTP")
        return outcome.data.decode("latin-1")

    def calculate_hmac(self, slot: int, challenge: bytes) -> bytes:
        """HMAC-SHA1 challenge-response with the key programmed in a slot."""
        slot = Slot.parse(slot)
        challenge = bytes(challenge)
        if len(challenge) > HMAC_CHALLENGE_SIZE:
            raise ValueError(
                f"challenge is {len(challenge)} bytes, max {HMAC_CHALLENGE_SIZE}"
            )
        self._ensure_selected()
        resp = self._proto.send_api_request(slot.map(CMD_HMAC_1, CMD_HMAC_2), challenge)
        outcome = decode(resp)
        if isinstance(outcome, NotPermitted):
            raise HmacNotPermittedHere(
                "YubiKey does not allow HMAC to be extracted in this mode "
                "(e.g. button press required)", outcome.sw,
            )
        if isinstance(outcome, Failure):
            raise HmacFailed(
                f"YubiKey failed to return an HMAC (SW={outcome.sw:04X})", outcome.sw
            )
        if not outcome.data:
            raise SlotNotConfigured(f"YubiKey slot {slot.value} is not configured for HMAC")
        return outcome.data

    def write_config(self, slot: int, payload: bytes) -> None:
        """Overwrite a slot's configuration with a pre-built payload.

        The payload is sent as-is; see ``yktool.core.yubiotp.config``.
        """
        slot = Slot.parse(slot)
        self._ensure_selected()
        resp = self._proto.send_api_request(
            slot.map(CMD_SET_CONF_1, CMD_SET_CONF_2), bytes(payload)
        )
        outcome = decode(resp)
        if not isinstance(outcome, Success):
            raise ProgramFailed(
                f"YubiKey failed to write configuration to slot {slot.value} "
                f"(SW={resp.sw:04X})", resp.sw,
            )
        lg.debug("slot %d programmed", slot.value)

    def describe(self, serial: int | None = None) -> str:
        """One-line summary; the serial is read from the key unless given."""
        if serial is not None:
            label = f"#{serial}"
        else:
            try:
                label = f"#{self.get_serial()}"
            except SerialUnavailable as exc:
                lg.debug("serial: %s", exc)
                label = "(unknown serial)"

        parts = ["YubiKey"]
        if self.identity is not None and self.identity.major in _MODEL_NAMES:
            parts.append(_MODEL_NAMES[self.identity.major])
        parts.append(label)
        parts.append(f"v{self.identity}" if self.identity is not None else "v?")
        if self.status is not None:
            if self.status.slot1_valid:
                parts.append("+slot1")
            if self.status.slot2_valid:
                parts.append("+slot2")
        return " ".join(parts)
