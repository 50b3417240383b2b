from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from smartcard.CardConnection import CardConnection
from smartcard.Exceptions import SmartcardException

from yktool.core.smartcard.observer import LoggingCardObserver
from yktool.core.smartcard.types import APDU, Response

if TYPE_CHECKING:
    from smartcard.reader.Reader import Reader

lg = logging.getLogger(__name__)


class TransportError(Exception):
    """The reader channel failed: card removed, reader gone, PC/SC error.

    The underlying pyscard exception is kept as ``__cause__``.
    """


class Card:
    """Wrapper around one pyscard reader connection.

    A card carries a single half-duplex channel: ``transmit`` blocks until
    the response has been received and must not be called concurrently.
    """

    def __init__(self) -> None:
        self._connection: CardConnection | None = None
        self._observer: LoggingCardObserver | None = None
        self._reader_name = ""

    @property
    def connected(self) -> bool:
        return self._connection is not None

    @property
    def reader_name(self) -> str:
        return self._reader_name

    @staticmethod
    def list_readers() -> list[Reader]:
        from smartcard.pcsc.PCSCExceptions import BaseSCardException
        from smartcard.System import readers

        try:
            return readers()
        except (SmartcardException, BaseSCardException) as exc:
            raise TransportError(f"cannot list readers: {exc}") from exc

    def connect(self, reader: Reader, protocol: int = CardConnection.T1_protocol) -> None:
        self._reader_name = str(reader)
        connection = reader.createConnection()
        observer = LoggingCardObserver(self._reader_name)
        connection.addObserver(observer)
        try:
            connection.connect(protocol)
        except SmartcardException as exc:
            connection.deleteObserver(observer)
            raise TransportError(f"cannot connect to {reader}: {exc}") from exc
        self._connection = connection
        self._observer = observer

    def disconnect(self) -> None:
        if self._connection is None:
            return
        try:
            self._connection.disconnect()
        except SmartcardException as exc:
            lg.debug("disconnect from %s failed: %s", self._reader_name, exc)
        finally:
            self._connection.deleteObserver(self._observer)
            self._connection = None
            self._observer = None

    def get_atr(self) -> bytes:
        if self._connection is None:
            raise TransportError("not connected to a card")
        return bytes(self._connection.getATR())

    def exchange(self, command: bytes) -> bytes:
        """Send raw command bytes, return raw response bytes (data + SW)."""
        if self._connection is None:
            raise TransportError("not connected to a card")
        try:
            data, sw1, sw2 = self._connection.transmit(list(command))
        except SmartcardException as exc:
            raise TransportError(f"exchange with {self._reader_name} failed: {exc}") from exc
        return bytes(data) + bytes([sw1, sw2])

    def transmit(self, apdu: APDU) -> Response:
        return Response.from_bytes(self.exchange(apdu.to_bytes()))
