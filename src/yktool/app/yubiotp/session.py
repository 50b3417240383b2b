"""YubiOTP operations behind each CLI command.

Each function takes an already selected ``YubiKey`` (or the registry for
``list_keys``) and already decoded arguments, and returns what the command
prints. Errors propagate to the caller.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO

from yktool.app.yubiotp.registry import KeyRegistry
from yktool.core.yubiotp import (
    HmacSha1SlotConfiguration,
    YubiKey,
    YubiOtpSlotConfiguration,
)
from yktool.core.yubiotp.client import HMAC_CHALLENGE_SIZE
from yktool.core.yubiotp.config import HMAC_KEY_SIZE, KEY_SIZE, UID_SIZE

lg = logging.getLogger(__name__)

PUBLIC_ID_SIZE = 6


def parse_hex(text: str, name: str, size: int | None = None) -> bytes:
    """Decode a hex option value, optionally requiring an exact length."""
    try:
        data = bytes.fromhex("".join(text.split()))
    except ValueError:
        raise ValueError(f"{name} is not valid hex: {text!r}") from None
    if size is not None and len(data) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(data)}")
    return data


def read_input(
    stream: BinaryIO,
    hex_in: bool = False,
    max_len: int = HMAC_CHALLENGE_SIZE,
    exact: bool = False,
) -> bytes:
    """Read command input from a binary stream.

    Raw input is read up to one byte past ``max_len`` so oversize input is
    detected without consuming an unbounded stream.
    """
    if hex_in:
        data = parse_hex(stream.read().decode("ascii", errors="replace"), "input")
    else:
        data = stream.read(max_len + 1)
    if exact and len(data) != max_len:
        raise ValueError(f"input must be exactly {max_len} bytes, got {len(data)}")
    if len(data) < 1:
        raise ValueError("need at least 1 byte of input")
    if len(data) > max_len:
        raise ValueError(f"input is max of {max_len} bytes")
    return data


def list_keys(registry: KeyRegistry) -> list[str]:
    return [device.key.describe(device.serial) for device in registry]


def read_otp(key: YubiKey, slot: int) -> str:
    return key.get_otp(slot)


def challenge_response(key: YubiKey, slot: int, challenge: bytes) -> bytes:
    return key.calculate_hmac(slot, challenge)


def program_hmac(
    key: YubiKey,
    slot: int,
    secret: bytes,
    acc_code: bytes | None = None,
    new_acc_code: bytes | None = None,
    touch: bool = False,
) -> None:
    """Program a slot for HMAC-SHA1 challenge-response.

    ``acc_code`` unlocks a slot that is currently protected; ``new_acc_code``
    protects the new configuration.
    """
    if len(secret) != HMAC_KEY_SIZE:
        raise ValueError(f"HMAC secret must be {HMAC_KEY_SIZE} bytes, got {len(secret)}")
    config = HmacSha1SlotConfiguration(secret).require_touch(touch)
    key.write_config(slot, config.to_payload(new_acc_code, acc_code))
    lg.info("slot %d programmed for HMAC-SHA1", slot)


@dataclass
class OtpCredentials:
    """Identity and key written to a Yubico OTP slot."""

    public_id: bytes
    private_id: bytes
    key: bytes

    def format(self) -> str:
        return "\n".join([
            f"public_id:  {self.public_id.hex()}",
            f"private_id: {self.private_id.hex()}",
            f"key:        {self.key.hex()}",
        ])


def program_otp(
    key: YubiKey,
    slot: int,
    public_id: bytes | None = None,
    private_id: bytes | None = None,
    aes_key: bytes | None = None,
    acc_code: bytes | None = None,
    new_acc_code: bytes | None = None,
) -> OtpCredentials:
    """Program a slot for Yubico OTP, generating missing secrets."""
    creds = OtpCredentials(
        public_id=public_id if public_id is not None else os.urandom(PUBLIC_ID_SIZE),
        private_id=private_id if private_id is not None else os.urandom(UID_SIZE),
        key=aes_key if aes_key is not None else os.urandom(KEY_SIZE),
    )
    config = YubiOtpSlotConfiguration(creds.public_id, creds.private_id, creds.key)
    key.write_config(slot, config.to_payload(new_acc_code, acc_code))
    lg.info("slot %d programmed for Yubico OTP", slot)
    return creds
