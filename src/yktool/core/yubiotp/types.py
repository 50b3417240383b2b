"""YubiOTP device data model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, unique
from typing import TypeVar

from yktool.core.yubiotp.errors import ApplicationNotSupported, InvalidSlot

T = TypeVar("T")

# Touch level bits, two per slot.
SLOT1_VALID = 0x01
SLOT1_TOUCH = 0x02
SLOT2_VALID = 0x04
SLOT2_TOUCH = 0x08


@unique
class Slot(IntEnum):
    ONE = 1
    TWO = 2

    @classmethod
    def parse(cls, value: object) -> Slot:
        """Validate a caller-supplied slot number."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidSlot(f"invalid slot {value!r} (must be 1 or 2)")
        try:
            return cls(value)
        except ValueError:
            raise InvalidSlot(f"invalid slot {value} (must be 1 or 2)") from None

    @property
    def index(self) -> int:
        return self.value - 1

    def map(self, one: T, two: T) -> T:
        return one if self is Slot.ONE else two


@dataclass(frozen=True)
class DeviceIdentity:
    """Firmware version and program sequence reported on SELECT/STATUS."""

    major: int
    minor: int
    patch: int
    pgm_seq: int

    @classmethod
    def from_bytes(cls, data: bytes) -> DeviceIdentity:
        if len(data) < 4:
            raise ApplicationNotSupported(
                f"short identity: {data.hex().upper() or '(empty)'}"
            )
        return cls(major=data[0], minor=data[1], patch=data[2], pgm_seq=data[3])

    @property
    def version(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def configured(self) -> bool:
        """False until the first configuration write (program sequence 0)."""
        return self.pgm_seq != 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class SlotStatus:
    """Per-slot "configuration valid" and "touch required" flags."""

    touch_level: int

    @classmethod
    def from_bytes(cls, data: bytes) -> SlotStatus:
        if len(data) < 2:
            raise ApplicationNotSupported(
                f"short touch level: {data.hex().upper() or '(empty)'}"
            )
        return cls(touch_level=int.from_bytes(data[:2], "little"))

    @property
    def slot1_valid(self) -> bool:
        return bool(self.touch_level & SLOT1_VALID)

    @property
    def slot1_touch(self) -> bool:
        return bool(self.touch_level & SLOT1_TOUCH)

    @property
    def slot2_valid(self) -> bool:
        return bool(self.touch_level & SLOT2_VALID)

    @property
    def slot2_touch(self) -> bool:
        return bool(self.touch_level & SLOT2_TOUCH)

    def valid(self, slot: Slot) -> bool:
        return bool(self.touch_level & slot.map(SLOT1_VALID, SLOT2_VALID))

    def touch(self, slot: Slot) -> bool:
        return bool(self.touch_level & slot.map(SLOT1_TOUCH, SLOT2_TOUCH))
