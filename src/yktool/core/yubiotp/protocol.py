"""YubiOTP application APDUs.

One ``send_`` method per command in the application's command table. The
class receives the card's ``transmit`` callable and never interprets the
status word beyond logging it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from yktool.core.smartcard import APDU, PROTOCOL, Response
from yktool.core.smartcard.observer import format_sw

lg = logging.getLogger(__name__)

AID_YUBIOTP = bytes.fromhex("A0000005272001")

CLA_ISO = 0x00

INS_SELECT = 0xA4
INS_API_REQ = 0x01
INS_OTP = 0x02
INS_STATUS = 0x03

SEL_APP_AID = 0x04

# API request sub-commands, carried in P1
CMD_SET_CONF_1 = 0x01
CMD_SET_CONF_2 = 0x03
CMD_GET_SERIAL = 0x10
CMD_HMAC_1 = 0x30
CMD_HMAC_2 = 0x38

_API_NAMES = {
    CMD_SET_CONF_1: "SET CONFIG 1",
    CMD_SET_CONF_2: "SET CONFIG 2",
    CMD_GET_SERIAL: "GET SERIAL",
    CMD_HMAC_1: "HMAC 1",
    CMD_HMAC_2: "HMAC 2",
}


class YubiOTP:
    """YubiOTP application protocol operations."""

    def __init__(self, transmit: Callable[[APDU], Response]) -> None:
        self._transmit = transmit

    def _send(self, label: str, apdu: APDU) -> Response:
        resp = self._transmit(apdu)
        lg.log(PROTOCOL, "%s %s", label, format_sw(resp.sw))
        return resp

    # -- commands --

    def send_select(self) -> Response:
        """SELECT the YubiOTP application by AID (00 A4 04 00)."""
        apdu = APDU(cla=CLA_ISO, ins=INS_SELECT, p1=SEL_APP_AID, p2=0x00, data=AID_YUBIOTP)
        return self._send(f"SELECT {AID_YUBIOTP.hex().upper()}", apdu)

    def send_status(self) -> Response:
        """STATUS (00 03): version, program sequence, touch level."""
        apdu = APDU(cla=CLA_ISO, ins=INS_STATUS, p1=0x00, p2=0x00)
        return self._send("STATUS", apdu)

    def send_read_otp(self, p1: int) -> Response:
        """OTP (00 02), P1 = zero-based slot."""
        apdu = APDU(cla=CLA_ISO, ins=INS_OTP, p1=p1, p2=0x00)
        return self._send(f"OTP slot={p1 + 1}", apdu)

    def send_api_request(self, cmd: int, data: bytes = b"") -> Response:
        """API REQUEST (00 01), P1 = sub-command."""
        apdu = APDU(cla=CLA_ISO, ins=INS_API_REQ, p1=cmd, p2=0x00, data=data)
        name = _API_NAMES.get(cmd, f"{cmd:02X}")
        return self._send(f"API {name} len={len(data)}", apdu)

    def send_get_serial(self) -> Response:
        return self.send_api_request(CMD_GET_SERIAL)
