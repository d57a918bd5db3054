"""
Post identifiers.

Posts created by this service carry a 12-byte native id, rendered as 24 hex
characters. Rows migrated from the old document store may instead carry a plain
string id. Callers cannot tell the two apart from a URL, so every lookup goes
through `candidates()` and matches any of the returned forms.

The legacy form exists only for migrated data; new rows never get one.
"""

import os
import re
import time
import itertools
from dataclasses import dataclass
from typing import List, Union

NATIVE_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")

_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))
_process_random = os.urandom(5)


@dataclass(frozen=True)
class NativeId:
    """12-byte id: 4-byte timestamp, 5 random bytes, 3-byte counter"""

    value: bytes

    def __post_init__(self):
        if len(self.value) != 12:
            raise ValueError("Native ids are exactly 12 bytes")

    def __str__(self) -> str:
        return self.value.hex()

    @classmethod
    def from_hex(cls, raw: str) -> "NativeId":
        return cls(bytes.fromhex(raw))


@dataclass(frozen=True)
class LegacyId:
    """Plain string id kept from migrated documents"""

    value: str

    def __str__(self) -> str:
        return self.value


Identifier = Union[NativeId, LegacyId]


def is_native_id(raw: str) -> bool:
    return bool(NATIVE_ID_PATTERN.match(raw))


def new_native_id() -> NativeId:
    """Generate a fresh, roughly time-ordered native id"""
    timestamp = int(time.time()).to_bytes(4, "big")
    counter = (next(_counter) % 0xFFFFFF).to_bytes(3, "big")
    return NativeId(timestamp + _process_random + counter)


def candidates(raw: str) -> List[Identifier]:
    """
    Every encoding a caller-supplied id may be stored under.

    A 24-hex-char string may be either a native id or a legacy id that happens
    to look like one, so both forms are returned and matched with OR.
    """
    raw = raw.strip()
    forms: List[Identifier] = []
    if is_native_id(raw):
        forms.append(NativeId.from_hex(raw))
    if raw:
        forms.append(LegacyId(raw))
    return forms
