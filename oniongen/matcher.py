import re

from .errors import InvalidPatternError


def anchor_pattern(pattern):
    """Anchor a pattern to the start of the address."""
    if pattern.startswith("^"):
        return pattern
    return "^" + pattern


class PatternMatcher:
    """Anchored regular expression over generated onion addresses."""

    def __init__(self, pattern):
        self.original = pattern
        self.pattern = anchor_pattern(pattern)
        try:
            self._regex = re.compile(self.pattern)
        except re.error as e:
            raise InvalidPatternError(f"Invalid regex pattern: {e}") from e

    @property
    def was_anchored(self):
        return self.pattern != self.original

    def test(self, address):
        return self._regex.match(address) is not None

    def __repr__(self):
        return f"PatternMatcher({self.pattern!r})"
