"""Seeded, cross-language deterministic shuffle for archive feeds.

The hash and PRNG reproduce the 32-bit integer semantics of the JavaScript
client (``Math.imul``, ``>>>``) bit for bit, so an ordering computed here is
identical to one computed in a browser for the same seed and id set.
"""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable, Sequence
from typing import Protocol, TypeVar

_MASK32 = 0xFFFFFFFF
_INT32_SIGN = 0x80000000
_MULBERRY_INCREMENT = 0x6D2B79F5
_UINT32_RANGE = 4294967296.0

SEED_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
SEED_LENGTH = 32


class HasId(Protocol):
    @property
    def id(self) -> str: ...


_T = TypeVar("_T", bound=HasId)


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def string_to_seed(value: str) -> int:
    """Fold a string into a non-negative 32-bit seed (``hash * 31 + code unit``)."""
    encoded = value.encode("utf-16-le")
    acc = 0
    for index in range(0, len(encoded), 2):
        code_unit = encoded[index] | (encoded[index + 1] << 8)
        acc = (acc * 31 + code_unit) & _MASK32
    if acc & _INT32_SIGN:
        acc -= 1 << 32
    return abs(acc)


def mulberry32(seed: int) -> Callable[[], float]:
    """Return a generator of floats in [0, 1) driven by the Mulberry32 recurrence."""
    state = seed & _MASK32

    def _next() -> float:
        nonlocal state
        state = (state + _MULBERRY_INCREMENT) & _MASK32
        t = _imul(state ^ (state >> 15), state | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _UINT32_RANGE

    return _next


def deterministic_shuffle(items: Sequence[_T], seed: str) -> list[_T]:
    """Permute ``items`` as a pure function of their ids and ``seed``.

    Input order does not matter: items are sorted by id before the
    Fisher-Yates pass.
    """
    result = sorted(items, key=lambda item: item.id)
    random = mulberry32(string_to_seed(seed))
    for i in range(len(result) - 1, 0, -1):
        j = int(random() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return result


def generate_workspace_seed() -> str:
    return "".join(secrets.choice(SEED_ALPHABET) for _ in range(SEED_LENGTH))
