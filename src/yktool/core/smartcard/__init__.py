from yktool.core.smartcard.card import Card, TransportError
from yktool.core.smartcard.logging import PROTOCOL, TRACE
from yktool.core.smartcard.types import APDU, Response

__all__ = ["APDU", "Card", "PROTOCOL", "Response", "TRACE", "TransportError"]
