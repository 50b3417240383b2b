"""Tests for the slot configuration structure."""

import pytest
from cryptography.hazmat.primitives import hashes

from yktool.core.yubiotp import HmacSha1SlotConfiguration, YubiOtpSlotConfiguration
from yktool.core.yubiotp.config import (
    CFGFLAG,
    CONFIG_SIZE,
    EXTFLAG,
    TKTFLAG,
    build_config,
    calculate_crc,
    check_crc,
    shorten_hmac_key,
)


def test_crc_x25_check_value():
    # CRC-16/X-25 of "123456789" is 0x906E after the final complement
    assert calculate_crc(b"123456789") == 0x906E ^ 0xFFFF


def test_build_config_layout():
    config = build_config(b"\x01\x02", b"\x03" * 6, b"\x04" * 16, 0x20, 0x40, 0x22, b"ABCDEF")
    assert len(config) == CONFIG_SIZE
    assert config[:16] == b"\x01\x02" + b"\x00" * 14
    assert config[16:22] == b"\x03" * 6
    assert config[22:38] == b"\x04" * 16
    assert config[38:44] == b"ABCDEF"
    assert config[44:48] == bytes([2, 0x20, 0x40, 0x22])
    assert config[48:50] == b"\x00\x00"
    assert check_crc(config)


def test_crc_detects_corruption():
    config = bytearray(build_config(b"", b"\x00" * 6, b"\x00" * 16, 0, 0, 0))
    config[20] ^= 0x01
    assert not check_crc(bytes(config))


class TestHmacConfiguration:

    def test_key_packing_and_flags(self):
        secret = bytes(range(1, 21))
        config = HmacSha1SlotConfiguration(secret).get_config()
        assert config[22:38] == secret[:16]
        assert config[16:22] == secret[16:] + b"\x00\x00"
        assert config[46] == TKTFLAG.CHAL_RESP
        assert config[47] == CFGFLAG.CHAL_HMAC | CFGFLAG.HMAC_LT64
        assert config[45] == (
            EXTFLAG.SERIAL_API_VISIBLE | EXTFLAG.SERIAL_USB_VISIBLE | EXTFLAG.ALLOW_UPDATE
        )

    def test_require_touch(self):
        config = HmacSha1SlotConfiguration(b"\x00" * 20).require_touch(True).get_config()
        assert config[47] & CFGFLAG.CHAL_BTN_TRIG
        config = HmacSha1SlotConfiguration(b"\x00" * 20).require_touch(False).get_config()
        assert not config[47] & CFGFLAG.CHAL_BTN_TRIG

    def test_payload_access_codes(self):
        payload = HmacSha1SlotConfiguration(b"\x00" * 20).to_payload(b"newacc", b"curacc")
        assert len(payload) == CONFIG_SIZE + 6
        assert payload[38:44] == b"newacc"
        assert payload[52:] == b"curacc"

    def test_payload_unprotected(self):
        payload = HmacSha1SlotConfiguration(b"\x00" * 20).to_payload()
        assert payload[38:44] == b"\x00" * 6
        assert payload[52:] == b"\x00" * 6

    def test_bad_access_code(self):
        with pytest.raises(ValueError):
            HmacSha1SlotConfiguration(b"\x00" * 20).to_payload(b"short")

    def test_long_key_is_hashed(self):
        key = b"k" * 100
        digest = hashes.Hash(hashes.SHA1())
        digest.update(key)
        assert shorten_hmac_key(key) == digest.finalize()

    def test_unsupported_key_length(self):
        with pytest.raises(ValueError):
            HmacSha1SlotConfiguration(b"\x00" * 32)


class TestYubiOtpConfiguration:

    def test_layout(self):
        config = YubiOtpSlotConfiguration(b"\xAA" * 6, b"\xBB" * 6, b"\xCC" * 16).get_config()
        assert config[:6] == b"\xAA" * 6
        assert config[44] == 6
        assert config[16:22] == b"\xBB" * 6
        assert config[22:38] == b"\xCC" * 16
        assert config[46] == 0 and config[47] == 0
        assert check_crc(config)

    @pytest.mark.parametrize("public_id,private_id,key", [
        (b"\x00" * 17, b"\x00" * 6, b"\x00" * 16),
        (b"", b"\x00" * 5, b"\x00" * 16),
        (b"", b"\x00" * 6, b"\x00" * 15),
    ])
    def test_sizes(self, public_id, private_id, key):
        with pytest.raises(ValueError):
            YubiOtpSlotConfiguration(public_id, private_id, key)


@pytest.mark.parametrize("config", [
    HmacSha1SlotConfiguration(b"\x00" * 20),
    HmacSha1SlotConfiguration(b"\x00" * 20).require_touch(True),
    YubiOtpSlotConfiguration(b"", b"\x00" * 6, b"\x00" * 16),
])
def test_ext_flags_fixed(config):
    assert config.get_config()[45] == (
        EXTFLAG.SERIAL_API_VISIBLE | EXTFLAG.SERIAL_USB_VISIBLE | EXTFLAG.ALLOW_UPDATE
    )
