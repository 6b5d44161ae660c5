import random
import string

from errors import InvalidIdentifier

ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
BASE = len(ALPHABET)
MAX_ID = 2 ** 63 - 1

_INDEX = {c: i for i, c in enumerate(ALPHABET)}


def encode(n: int) -> str:
    """Encode a non-negative integer as a base-62 string."""
    if n < 0:
        raise ValueError(f"cannot encode negative id {n}")
    if n == 0:
        return ALPHABET[0]
    out = []
    while n:
        n, rem = divmod(n, BASE)
        out.append(ALPHABET[rem])
    return "".join(reversed(out))


def decode(text: str) -> int:
    """Decode a base-62 string back into a paste id.

    Raises InvalidIdentifier for an empty string, a character outside the
    alphabet, or a value that does not fit in 63 bits.
    """
    if not text:
        raise InvalidIdentifier("empty identifier")
    n = 0
    for c in text:
        digit = _INDEX.get(c)
        if digit is None:
            raise InvalidIdentifier(f"invalid character {c!r} in identifier {text!r}")
        n = n * BASE + digit
        if n > MAX_ID:
            raise InvalidIdentifier(f"identifier {text!r} out of range")
    return n


class IdentifierAllocator:
    """Draws random 63-bit paste ids.

    The allocator owns one generator for its whole lifetime. Uniqueness is
    not its job: the store rejects colliding ids and the caller retries.
    """

    def __init__(self, rng=None):
        self._rng = rng if rng is not None else random.SystemRandom()

    def allocate(self) -> int:
        return self._rng.getrandbits(63)
