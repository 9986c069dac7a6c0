"""Random short-code generation.

Codes are drawn with nanoid, which samples the OS random source with a
bitmask and rejects out-of-range bytes, so every character of the alphabet is
equally likely. Uniqueness is not guaranteed here; callers check the store.
"""

from nanoid import generate

from app.models import CODE_MAX_LENGTH

__all__ = ["ALPHABET", "DEFAULT_CODE_LENGTH", "CodeGenerator"]

ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
DEFAULT_CODE_LENGTH = 6


class CodeGenerator:
    """Produces fixed-length alphanumeric codes, independent across calls."""

    def __init__(self, length: int = DEFAULT_CODE_LENGTH, alphabet: str = ALPHABET) -> None:
        assert isinstance(length, int) and 0 < length <= CODE_MAX_LENGTH, (
            f"length must be an int in 1..{CODE_MAX_LENGTH}, got {length!r}"
        )
        self.length = length
        self.alphabet = alphabet

    def generate(self) -> str:
        return generate(self.alphabet, self.length)
