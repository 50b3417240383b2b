"""Slot configuration structure.

Builds the payload sent by ``YubiKey.write_config``::

    fixed(16) | uid(6) | key(16) | acc_code(6) | fixed_size(1)
    | ext_flags(1) | tkt_flags(1) | cfg_flags(1) | rfu(2) | crc(2, LE)
    | current acc_code(6)

The CRC is the complement of an ISO 13239 CRC-16 over the preceding 50
bytes. The trailing access code unlocks a slot that is already protected;
it is all zeros otherwise.
"""

from __future__ import annotations

import struct
from enum import IntFlag
from typing import TypeVar

from cryptography.hazmat.primitives import hashes

FIXED_SIZE = 16
UID_SIZE = 6
KEY_SIZE = 16
ACC_CODE_SIZE = 6
CONFIG_SIZE = 52
HMAC_KEY_SIZE = 20
SHA1_BLOCK_SIZE = 64

CRC_OK_RESIDUAL = 0xF0B8


class TKTFLAG(IntFlag):
    TAB_FIRST = 0x01
    APPEND_TAB1 = 0x02
    APPEND_TAB2 = 0x04
    APPEND_DELAY1 = 0x08
    APPEND_DELAY2 = 0x10
    APPEND_CR = 0x20
    CHAL_RESP = 0x40
    PROTECT_CFG2 = 0x80


class CFGFLAG(IntFlag):
    SEND_REF = 0x01
    SHORT_TICKET = 0x02
    HMAC_LT64 = 0x04
    CHAL_BTN_TRIG = 0x08
    STATIC_TICKET = 0x20
    CHAL_YUBICO = 0x20
    CHAL_HMAC = 0x22


class EXTFLAG(IntFlag):
    SERIAL_BTN_VISIBLE = 0x01
    SERIAL_USB_VISIBLE = 0x02
    SERIAL_API_VISIBLE = 0x04
    USE_NUMERIC_KEYPAD = 0x08
    FAST_TRIG = 0x10
    ALLOW_UPDATE = 0x20
    DORMANT = 0x40
    LED_INV = 0x80


def calculate_crc(data: bytes) -> int:
    crc = 0xFFFF
    for b in data:
        crc ^= b
        for _ in range(8):
            lsb = crc & 1
            crc >>= 1
            if lsb:
                crc ^= 0x8408
    return crc


def check_crc(data: bytes) -> bool:
    """True if ``data`` ends with a valid complemented CRC."""
    return calculate_crc(data) == CRC_OK_RESIDUAL


def check_acc_code(acc_code: bytes | None) -> bytes:
    if acc_code is None:
        return b"\0" * ACC_CODE_SIZE
    if len(acc_code) != ACC_CODE_SIZE:
        raise ValueError(f"access code must be {ACC_CODE_SIZE} bytes, got {len(acc_code)}")
    return bytes(acc_code)


def build_config(
    fixed: bytes,
    uid: bytes,
    key: bytes,
    ext: int,
    tkt: int,
    cfg: int,
    acc_code: bytes | None = None,
) -> bytes:
    """Pack the 52-byte configuration structure."""
    buf = (
        fixed.ljust(FIXED_SIZE, b"\0")
        + uid
        + key
        + check_acc_code(acc_code)
        + struct.pack(">BBBB", len(fixed), ext, tkt, cfg)
        + b"\0\0"
    )
    return buf + struct.pack("<H", 0xFFFF & ~calculate_crc(buf))


def shorten_hmac_key(key: bytes) -> bytes:
    """Reduce an HMAC-SHA1 key to at most 20 bytes.

    Keys longer than a SHA-1 block are hashed, as HMAC itself would do;
    keys of 21 to 64 bytes cannot be stored.
    """
    if len(key) > SHA1_BLOCK_SIZE:
        digest = hashes.Hash(hashes.SHA1())
        digest.update(key)
        return digest.finalize()
    if len(key) > HMAC_KEY_SIZE:
        raise ValueError(f"HMAC keys of {len(key)} bytes not supported (max {HMAC_KEY_SIZE})")
    return key


Cfg = TypeVar("Cfg", bound="SlotConfiguration")


class SlotConfiguration:
    """Base slot configuration: empty identity, serial visible, updatable."""

    def __init__(self) -> None:
        self._fixed = b""
        self._uid = b"\0" * UID_SIZE
        self._key = b"\0" * KEY_SIZE
        self._ext = int(
            EXTFLAG.SERIAL_API_VISIBLE | EXTFLAG.SERIAL_USB_VISIBLE | EXTFLAG.ALLOW_UPDATE
        )
        self._tkt = 0
        self._cfg = 0

    @staticmethod
    def _set(flags: int, flag: int, value: bool) -> int:
        return flags | flag if value else flags & ~int(flag)

    def get_config(self, acc_code: bytes | None = None) -> bytes:
        """The configuration structure, protected by ``acc_code`` if given."""
        return build_config(
            self._fixed, self._uid, self._key,
            self._ext, self._tkt, self._cfg,
            acc_code,
        )

    def to_payload(
        self, acc_code: bytes | None = None, cur_acc_code: bytes | None = None
    ) -> bytes:
        """Configuration plus the access code currently protecting the slot."""
        return self.get_config(acc_code) + check_acc_code(cur_acc_code)


class HmacSha1SlotConfiguration(SlotConfiguration):
    """Challenge-response HMAC-SHA1 with a secret of up to 20 bytes."""

    def __init__(self, key: bytes) -> None:
        super().__init__()
        key = shorten_hmac_key(bytes(key))
        # 16 bytes in the key field, the remaining 4 in uid
        self._key = key[:KEY_SIZE].ljust(KEY_SIZE, b"\0")
        self._uid = key[KEY_SIZE:].ljust(UID_SIZE, b"\0")
        self._tkt |= TKTFLAG.CHAL_RESP
        self._cfg |= CFGFLAG.CHAL_HMAC | CFGFLAG.HMAC_LT64

    def require_touch(self: Cfg, value: bool) -> Cfg:
        self._cfg = self._set(self._cfg, CFGFLAG.CHAL_BTN_TRIG, value)
        return self


class YubiOtpSlotConfiguration(SlotConfiguration):
    """Yubico OTP: public id, 6-byte private id, 16-byte AES key."""

    def __init__(self, public_id: bytes, private_id: bytes, key: bytes) -> None:
        super().__init__()
        if len(public_id) > FIXED_SIZE:
            raise ValueError(f"public id must be at most {FIXED_SIZE} bytes")
        if len(private_id) != UID_SIZE:
            raise ValueError(f"private id must be {UID_SIZE} bytes")
        if len(key) != KEY_SIZE:
            raise ValueError(f"key must be {KEY_SIZE} bytes")
        self._fixed = bytes(public_id)
        self._uid = bytes(private_id)
        self._key = bytes(key)
