class OnionGenError(Exception):
    """Base class for every error raised by oniongen."""


class ValidationError(OnionGenError, ValueError):
    """Malformed user input: CLI arguments, patterns, hex or base32 fields."""


class InvalidKeyLength(ValidationError):
    pass


class InvalidSeedLength(ValidationError):
    pass


class InvalidPatternError(ValidationError):
    pass


class KeyGenerationError(OnionGenError):
    """The Ed25519 primitive failed or returned an unexpected container."""


class SearchError(OnionGenError):
    """The search cannot continue (no worker left alive)."""
