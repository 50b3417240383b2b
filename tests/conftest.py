"""
Fixtures for YubiOTP tests.

Two stand-ins for a card channel:
- ScriptedTransmit replays canned responses and records every APDU sent.
- FakeYubiKey emulates the YubiOTP application well enough to program a
  slot and answer OTP/HMAC requests.
"""

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from yktool.core.smartcard import APDU, Response, TransportError
from yktool.core.yubiotp.config import check_crc
from yktool.core.yubiotp.protocol import AID_YUBIOTP


def ok(data: bytes = b"") -> Response:
    return Response(data=data, sw1=0x90, sw2=0x00)


def sw(value: int, data: bytes = b"") -> Response:
    return Response(data=data, sw1=value >> 8, sw2=value & 0xFF)


SELECT_OK = ok(bytes([5, 4, 3, 7]))


class ScriptedTransmit:
    """Returns queued responses in order and records the APDUs sent."""

    def __init__(self, *responses: Response) -> None:
        self.responses = list(responses)
        self.sent: list[APDU] = []

    def __call__(self, apdu: APDU) -> Response:
        self.sent.append(apdu)
        if not self.responses:
            raise AssertionError(f"unexpected APDU {apdu!r}")
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


class FakeYubiKey:
    """Minimal YubiOTP application emulator."""

    def __init__(
        self,
        version=(5, 4, 3),
        serial=12345678,
        otp_over_this_interface=True,
    ) -> None:
        self.version = version
        self.serial = serial
        self.pgm_seq = 0
        self.otp_over_this_interface = otp_over_this_interface
        self.otps = {1: b"", 2: b""}
        self.hmac_keys = {1: None, 2: None}
        self.touch = {1: False, 2: False}
        self.acc_codes = {1: b"\0" * 6, 2: b"\0" * 6}
        self.configs = {1: None, 2: None}
        self.removed = False
        self.sent: list[APDU] = []

    @property
    def touch_level(self) -> int:
        level = 0
        for slot, valid_bit, touch_bit in ((1, 0x01, 0x02), (2, 0x04, 0x08)):
            if self.configs[slot] is not None:
                level |= valid_bit
            if self.touch[slot]:
                level |= touch_bit
        return level

    def _identity(self) -> bytes:
        return bytes([*self.version, self.pgm_seq])

    def __call__(self, apdu: APDU) -> Response:
        if self.removed:
            raise TransportError("card removed")
        self.sent.append(apdu)
        if apdu.ins == 0xA4:
            if apdu.data == AID_YUBIOTP:
                return ok(self._identity())
            return sw(0x6A82)
        if apdu.ins == 0x03:
            return ok(self._identity() + self.touch_level.to_bytes(2, "little"))
        if apdu.ins == 0x02:
            if not self.otp_over_this_interface:
                return sw(0x6985)
            return ok(self.otps[apdu.p1 + 1])
        if apdu.ins == 0x01:
            return self._api_request(apdu.p1, apdu.data)
        return sw(0x6D00)

    def _api_request(self, cmd: int, data: bytes) -> Response:
        if cmd == 0x10:
            return ok(self.serial.to_bytes(4, "big"))
        if cmd in (0x30, 0x38):
            slot = 1 if cmd == 0x30 else 2
            key = self.hmac_keys[slot]
            if key is None:
                return ok()
            if self.touch[slot]:
                return sw(0x6985)
            mac = crypto_hmac.HMAC(key, hashes.SHA1())
            mac.update(data)
            return ok(mac.finalize())
        if cmd in (0x01, 0x03):
            return self._set_config(1 if cmd == 0x01 else 2, data)
        return sw(0x6A86)

    def _set_config(self, slot: int, data: bytes) -> Response:
        if len(data) != 58 or not check_crc(data[:52]):
            return sw(0x6A80)
        config, cur_acc = data[:52], data[52:]
        if cur_acc != self.acc_codes[slot]:
            return sw(0x6982)
        self.configs[slot] = config
        self.acc_codes[slot] = config[38:44]
        tkt, cfg = config[46], config[47]
        if tkt & 0x40 and (cfg & 0x22) == 0x22:
            self.hmac_keys[slot] = config[22:38] + config[16:20]
        else:
            self.hmac_keys[slot] = None
        self.touch[slot] = bool(cfg & 0x08) and self.hmac_keys[slot] is not None
        self.pgm_seq = (self.pgm_seq + 1) & 0xFF
        return ok(self._identity())


class FakeReader:
    def __init__(self, name: str, token=None, connect_error: bool = False) -> None:
        self.name = name
        self.token = token
        self.connect_error = connect_error

    def __str__(self) -> str:
        return self.name


class FakeCard:
    """Card double driving a FakeReader's token instead of pyscard."""

    instances: list["FakeCard"] = []

    def __init__(self) -> None:
        self.reader = None
        self.disconnected = False
        FakeCard.instances.append(self)

    @property
    def reader_name(self) -> str:
        return str(self.reader)

    def connect(self, reader) -> None:
        if reader.connect_error or reader.token is None:
            raise TransportError(f"no card in {reader}")
        self.reader = reader

    def disconnect(self) -> None:
        self.disconnected = True

    def transmit(self, apdu: APDU) -> Response:
        return self.reader.token(apdu)


@pytest.fixture
def token():
    return FakeYubiKey()


@pytest.fixture(autouse=True)
def _reset_fake_cards():
    FakeCard.instances.clear()
    yield
    FakeCard.instances.clear()
