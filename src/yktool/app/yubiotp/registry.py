"""Discovered YubiKeys, one per reader."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from yktool.core.smartcard import Card, TransportError
from yktool.core.yubiotp import (
    ApplicationNotSupported,
    NoDeviceFound,
    SerialUnavailable,
    YubiKey,
)

lg = logging.getLogger(__name__)


@dataclass
class Device:
    """A connected card, the YubiOTP client bound to it, and its serial."""

    card: Card
    key: YubiKey
    serial: int | None = None

    @property
    def reader(self) -> str:
        return self.card.reader_name


def select_device(devices: list[Device], serial: int | None = None) -> Device:
    """The device with the given serial number, or the first one."""
    if not devices:
        raise NoDeviceFound("no YubiKey found")
    if serial is None:
        return devices[0]
    for device in devices:
        if device.serial is not None and device.serial == serial:
            return device
    raise NoDeviceFound(f"no YubiKey with serial {serial}")


class KeyRegistry:
    """Every YubiKey found on the attached readers, in reader order."""

    def __init__(self, devices: list[Device] | None = None) -> None:
        self._devices = list(devices or [])

    @classmethod
    def probe(
        cls,
        readers: Iterable | None = None,
        card_factory: Callable[[], Card] = Card,
    ) -> KeyRegistry:
        """Connect to each reader and keep the cards running YubiOTP.

        Readers without a card, and cards refusing the application, are
        skipped. A transport failure while probing a connected card is
        reported as a warning and that reader is skipped too.
        """
        if readers is None:
            readers = Card.list_readers()
        devices: list[Device] = []
        for reader in readers:
            card = card_factory()
            try:
                card.connect(reader)
            except TransportError as exc:
                lg.debug("no card on %s: %s", reader, exc)
                continue
            try:
                device = _probe_card(card)
            except TransportError as exc:
                lg.warning("skipping %s: %s", reader, exc)
                card.disconnect()
                continue
            if device is None:
                lg.debug("no YubiOTP application on %s", reader)
                card.disconnect()
                continue
            devices.append(device)
        return cls(devices)

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices)

    def __enter__(self) -> KeyRegistry:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def devices(self) -> list[Device]:
        return list(self._devices)

    def select(self, serial: int | None = None) -> YubiKey:
        return select_device(self._devices, serial).key

    def close(self) -> None:
        for device in self._devices:
            device.card.disconnect()
        self._devices.clear()


def _probe_card(card: Card) -> Device | None:
    key = YubiKey.probe(card.transmit)
    if key is None:
        return None
    try:
        serial = key.get_serial()
    except SerialUnavailable as exc:
        lg.debug("serial not readable on %s: %s", card.reader_name, exc)
        serial = None
    except ApplicationNotSupported as exc:
        lg.debug("YubiOTP application lost on %s: %s", card.reader_name, exc)
        return None
    lg.debug("YubiKey v%s serial=%s on %s", key.identity, serial, card.reader_name)
    return Device(card=card, key=key, serial=serial)
