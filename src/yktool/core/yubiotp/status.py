"""Status word interpretation shared by every YubiOTP command.

``decode`` turns a Response into one of three tags. Each client operation
maps the tags onto its own error kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from yktool.core.smartcard import Response

SW_OK = 0x9000
SW_CONDITIONS_NOT_SATISFIED = 0x6985


@dataclass(frozen=True)
class Success:
    data: bytes


@dataclass(frozen=True)
class NotPermitted:
    sw: int = SW_CONDITIONS_NOT_SATISFIED


@dataclass(frozen=True)
class Failure:
    sw: int


Outcome = Union[Success, NotPermitted, Failure]


def decode(response: Response) -> Outcome:
    if response.sw == SW_OK:
        return Success(response.data)
    if response.sw == SW_CONDITIONS_NOT_SATISFIED:
        return NotPermitted(response.sw)
    return Failure(response.sw)
