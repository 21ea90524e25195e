"""
chainconf Exceptions

Custom exception classes for configuration loading and derived values.
"""

from typing import List, Sequence


class ChainConfError(Exception):
    """Base exception for chainconf."""
    pass


class SourceLoadError(ChainConfError):
    """A named configuration source could not be read."""

    def __init__(self, origin: str, cause: Exception):
        self.origin = origin
        self.cause = cause
        super().__init__(f"Can't read config source {origin}: {cause}")


class ValidationError(ChainConfError):
    """A single named validation check failed."""

    def __init__(self, check_name: str, cause: Exception):
        self.check_name = check_name
        self.cause = cause
        super().__init__(f"{check_name}: {cause}")


class MergeValidationError(ChainConfError):
    """One or more validation checks failed against a merged configuration."""

    def __init__(self, errors: Sequence[ValidationError]):
        self.errors: List[ValidationError] = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(
            f"Configuration failed {len(self.errors)} validation check(s): {details}"
        )


class ConfigError(ChainConfError):
    """Ambiguous or invalid configuration (e.g. network config selection)."""
    pass


class MissingKey(ConfigError):
    """A required key is not defined by any configuration layer."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No configuration setting found for key '{key}'")


class TypeMismatch(ChainConfError):
    """A stored value can't be converted to the requested type."""

    def __init__(self, key: str, expected: str, value: object):
        self.key = key
        self.expected = expected
        self.value = value
        super().__init__(f"'{key}' has type {type(value).__name__} rather than {expected}: {value!r}")


class InvalidKeyError(ChainConfError):
    """Invalid cryptographic key."""
    pass


class InvalidKeyLength(InvalidKeyError):
    """A hex-encoded private key doesn't decode to the expected length."""

    def __init__(self, key: str, raw: str, message: str):
        self.key = key
        self.raw = raw
        super().__init__(message)


class PeerError(ChainConfError):
    """Peer list entry error."""
    pass


class InvalidNodeId(PeerError):
    """A configured node id is not valid hex of the expected length."""

    def __init__(self, raw: str, entry: object):
        self.raw = raw
        self.entry = entry
        super().__init__(f"Invalid config nodeId '{raw}' at {entry}")


class UnexpectedPeerEntry(PeerError):
    """A peer list entry matches none of the known shapes."""

    def __init__(self, message: str, entry: object):
        self.entry = entry
        super().__init__(f"{message}: {entry}")


class IpResolutionError(ChainConfError):
    """Bind or external IP autodetection failed."""
    pass
