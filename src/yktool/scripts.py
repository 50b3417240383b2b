# filename : scripts.py
# created  : 10/17/2026


import logging
import sys

import click

from yktool.core.smartcard.logging import configure

lg = logging.getLogger(__name__)


class YktoolGroup(click.Group):
    """Click group reporting bad usage as ``error: ...`` with exit code 1."""

    def main(self, *args, **kwargs):
        kwargs.pop("standalone_mode", None)
        try:
            return super().main(*args, standalone_mode=False, **kwargs)
        except click.ClickException as exc:
            click.echo(f"error: {exc.format_message()}", err=True)
            sys.exit(1)
        except click.Abort:
            click.echo("error: aborted", err=True)
            sys.exit(1)


_SLOT = click.argument("slot", type=int)
_ACC_CODE = click.option(
    "--acc-code", default=None, metavar="HEX",
    help="Current 6-byte access code of a protected slot.",
)
_SET_ACC_CODE = click.option(
    "--set-acc-code", default=None, metavar="HEX",
    help="Protect the new configuration with this 6-byte access code.",
)
_HEX_IN = click.option("--hex-in", is_flag=True, help="Read input as hex text.")


@click.group(cls=YktoolGroup)
@click.option("-v", "--verbose", is_flag=True, help="TRACE level (show raw APDUs).")
@click.option("--debug", is_flag=True, help="DEBUG level.")
@click.option(
    "--serial",
    type=int,
    default=None,
    help="Use the YubiKey with this serial number (default: first found).",
)
@click.pass_context
def yktool(ctx, verbose, debug, serial):
    """YubiKey OTP application tool."""
    configure(verbose=verbose, debug=debug)
    ctx.obj = {"serial": serial}


@yktool.command("list")
@click.pass_obj
def list_(obj):
    """List YubiKeys."""
    from yktool.app.main import run
    run("list", obj["serial"])


@yktool.command()
@_SLOT
@click.pass_obj
def otp(obj, slot):
    """Get a one-time password from SLOT."""
    from yktool.app.main import run
    run("otp", obj["serial"], slot=slot)


@yktool.command()
@_SLOT
@_HEX_IN
@click.option("--hex-out", is_flag=True, help="Write the response as hex text.")
@click.pass_obj
def hmac(obj, slot, hex_in, hex_out):
    """Compute an HMAC-SHA1 over stdin (max 64 bytes) with SLOT."""
    from yktool.app.main import run
    run("hmac", obj["serial"], slot=slot, hex_in=hex_in, hex_out=hex_out)


@yktool.group()
def program():
    """Write a slot configuration."""


@program.command("hmac")
@_SLOT
@_HEX_IN
@_ACC_CODE
@_SET_ACC_CODE
@click.option("--touch", is_flag=True, help="Require a button press for each response.")
@click.pass_obj
def program_hmac(obj, slot, hex_in, acc_code, set_acc_code, touch):
    """Program SLOT for HMAC-SHA1 with a 20-byte secret from stdin."""
    from yktool.app.main import run
    run(
        "program-hmac", obj["serial"], slot=slot, hex_in=hex_in,
        acc_code=acc_code, set_acc_code=set_acc_code, touch=touch,
    )


@program.command("otp")
@_SLOT
@click.option("--public-id", default=None, metavar="HEX", help="Public id (default: random).")
@click.option("--private-id", default=None, metavar="HEX", help="6-byte private id (default: random).")
@click.option("--key", default=None, metavar="HEX", help="16-byte AES key (default: random).")
@_ACC_CODE
@_SET_ACC_CODE
@click.pass_obj
def program_otp(obj, slot, public_id, private_id, key, acc_code, set_acc_code):
    """Program SLOT for Yubico OTP and print the credentials."""
    from yktool.app.main import run
    run(
        "program-otp", obj["serial"], slot=slot, public_id=public_id,
        private_id=private_id, key=key, acc_code=acc_code, set_acc_code=set_acc_code,
    )
