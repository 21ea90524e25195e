"""
chainconf Layered Configuration

Loads every configuration layer at startup, merges them by precedence and
validates the result. Environment variables override every file.

The facade and validation are lazily loaded: they depend on the peer,
identity and network modules, which themselves read from this package.
"""

from . import keys
from .sources import ConfigSource, SourceLoader, environment_source, flatten, parse_toml_file
from .merged import MergedConfig, ValueType, convert_value


def __getattr__(name):
    """Lazy loading of the modules that depend on derived-value resolvers."""
    if name == "SystemProperties":
        from .properties import SystemProperties
        return SystemProperties
    if name == "ConfigAccessors":
        from .accessors import ConfigAccessors
        return ConfigAccessors
    if name in ("ValidationRule", "VALIDATION_RULES", "validate", "run_checks"):
        from . import validation
        return getattr(validation, name)
    raise AttributeError(f"module 'chainconf.config' has no attribute {name!r}")


__all__ = [
    "keys",
    "ConfigSource",
    "SourceLoader",
    "environment_source",
    "flatten",
    "parse_toml_file",
    "MergedConfig",
    "ValueType",
    "convert_value",
    "SystemProperties",
    "ConfigAccessors",
    "ValidationRule",
    "VALIDATION_RULES",
    "validate",
    "run_checks",
]
