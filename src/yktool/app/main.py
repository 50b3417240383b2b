# filename : main.py
# created  : 10/17/2026


import logging
import sys
from typing import BinaryIO

import click

from yktool.app.yubiotp import session
from yktool.app.yubiotp.registry import KeyRegistry
from yktool.core.smartcard import TransportError
from yktool.core.yubiotp import YubiKeyError
from yktool.core.yubiotp.config import ACC_CODE_SIZE, HMAC_KEY_SIZE

lg = logging.getLogger(__name__)


def _open_registry() -> KeyRegistry:
    return KeyRegistry.probe()


def _acc_codes(acc_code: str | None, set_acc_code: str | None):
    cur = session.parse_hex(acc_code, "--acc-code", ACC_CODE_SIZE) if acc_code else None
    new = session.parse_hex(set_acc_code, "--set-acc-code", ACC_CODE_SIZE) if set_acc_code else None
    return cur, new


def _stdout() -> BinaryIO:
    return click.get_binary_stream("stdout")


def _run_list(serial: int | None) -> None:
    with _open_registry() as registry:
        click.echo("YubiKeys available:", err=True)
        for line in session.list_keys(registry):
            click.echo(f"  - {line}")


def _run_otp(serial: int | None, slot: int) -> None:
    with _open_registry() as registry:
        click.echo(session.read_otp(registry.select(serial), slot))


def _run_hmac(serial: int | None, slot: int, hex_in: bool, hex_out: bool) -> None:
    challenge = session.read_input(click.get_binary_stream("stdin"), hex_in)
    with _open_registry() as registry:
        digest = session.challenge_response(registry.select(serial), slot, challenge)
    if hex_out:
        click.echo(digest.hex())
    else:
        out = _stdout()
        out.write(digest)
        out.flush()


def _run_program_hmac(
    serial: int | None,
    slot: int,
    hex_in: bool,
    acc_code: str | None,
    set_acc_code: str | None,
    touch: bool,
) -> None:
    cur, new = _acc_codes(acc_code, set_acc_code)
    secret = session.read_input(
        click.get_binary_stream("stdin"), hex_in, max_len=HMAC_KEY_SIZE, exact=True
    )
    with _open_registry() as registry:
        session.program_hmac(registry.select(serial), slot, secret, cur, new, touch)


def _run_program_otp(
    serial: int | None,
    slot: int,
    public_id: str | None,
    private_id: str | None,
    key: str | None,
    acc_code: str | None,
    set_acc_code: str | None,
) -> None:
    cur, new = _acc_codes(acc_code, set_acc_code)
    pub = session.parse_hex(public_id, "--public-id") if public_id else None
    priv = session.parse_hex(private_id, "--private-id") if private_id else None
    aes = session.parse_hex(key, "--key") if key else None
    with _open_registry() as registry:
        creds = session.program_otp(registry.select(serial), slot, pub, priv, aes, cur, new)
    click.echo(creds.format())


_COMMANDS = {
    "list": _run_list,
    "otp": _run_otp,
    "hmac": _run_hmac,
    "program-hmac": _run_program_hmac,
    "program-otp": _run_program_otp,
}


def main(command: str, serial: int | None = None, **kwargs) -> int:
    """Run one command; return the process exit code."""
    lg.debug("yktool %s", command)
    try:
        _COMMANDS[command](serial, **kwargs)
    except (YubiKeyError, TransportError, ValueError) as exc:
        lg.debug("%s failed", command, exc_info=True)
        click.echo(f"error: {exc}", err=True)
        return 1
    return 0


def run(command: str, serial: int | None = None, **kwargs) -> None:
    sys.exit(main(command, serial, **kwargs))
