# core/identifiers.py
import secrets
import string
from typing import Final

# Base62: 0-9, A-Z, a-z. URL-safe without escaping.
ALPHABET: Final[str] = string.digits + string.ascii_uppercase + string.ascii_lowercase
LENGTH: Final[int] = 12  # ~71 bits of entropy


class IdentifierAllocator:
    """
    Draws snippet ids uniformly from ALPHABET^LENGTH with a CSPRNG.

    Ids double as read capabilities, so the source must be `secrets`, never
    `random`. The allocator keeps no registry; collisions are detected by the
    store and retried by the caller.
    """

    def __init__(self, alphabet: str = ALPHABET, length: int = LENGTH) -> None:
        if len(set(alphabet)) != len(alphabet) or not alphabet:
            raise ValueError("alphabet must be non-empty with unique characters")
        if length < 1:
            raise ValueError("length must be positive")
        self._alphabet = alphabet
        self._alphabet_set = frozenset(alphabet)
        self._length = length

    @property
    def length(self) -> int:
        return self._length

    def allocate(self) -> str:
        return "".join(secrets.choice(self._alphabet) for _ in range(self._length))

    def is_well_formed(self, candidate: object) -> bool:
        return (
            isinstance(candidate, str)
            and len(candidate) == self._length
            and all(c in self._alphabet_set for c in candidate)
        )


_default = IdentifierAllocator()


def allocate() -> str:
    return _default.allocate()


def is_well_formed(candidate: object) -> bool:
    """Shape check only. Never consults the store."""
    return _default.is_well_formed(candidate)
