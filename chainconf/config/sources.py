"""
chainconf Configuration Sources

Loads the named layers that make up a node configuration without
interpreting their content. Every layer becomes an immutable
:class:`ConfigSource` keyed by dotted path.

Layers, lowest priority first:
    1. chainconf.toml resource       embedded defaults
    2. $CHAINCONF_CONF_RES resource  environment-named resource
    3. user.toml resource            user scope
    4. ./config/chainconf.toml       user scope
    5. $CHAINCONF_CONF_FILE file     environment conf-file override
    6. test-chainconf.toml,
       test-user.toml resources      test scope
    7. API config                    passed by the embedding application
    8. CHAINCONF__* variables        process environment, applied last

A source that is missing or unreadable is logged and replaced by an empty
one; it never aborts loading.
"""

from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from dotenv import dotenv_values

from ..constants import (
    DEFAULT_RESOURCE,
    ENV_CONF_FILE,
    ENV_CONF_RES,
    ENV_OVERRIDE_PREFIX,
    ENV_OVERRIDE_SEPARATOR,
    ENV_RESOURCE_PATH,
    PACKAGE_RESOURCE_DIR,
    TEST_RESOURCE,
    TEST_USER_RESOURCE,
    USER_DIR_CONFIG,
    USER_RESOURCE,
)
from ..exceptions import SourceLoadError
from ..logger import get_logger

logger = get_logger(__name__)


def flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    Flatten nested mappings into dotted leaf paths.

    Lists (including lists of tables) are leaves. Within one mapping the
    last definition of a path wins.
    """
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten(value, path))
        else:
            flat[path] = value
    return flat


class ConfigSource(Mapping[str, Any]):
    """
    One immutable configuration layer.

    Maps dotted key paths to values. ``origin`` says where the layer came
    from and is only used for diagnostics.
    """

    __slots__ = ("_data", "origin")

    def __init__(self, data: Optional[Mapping[str, Any]] = None, origin: str = "<memory>"):
        self._data = MappingProxyType(flatten(data or {}))
        self.origin = origin

    @classmethod
    def empty(cls, origin: str = "<empty>") -> "ConfigSource":
        return cls({}, origin)

    @classmethod
    def from_pairs(cls, pairs: Sequence[str], origin: str = "<override>") -> "ConfigSource":
        """Build from ``[key, value, key, value, ...]``."""
        if len(pairs) % 2 != 0:
            raise ValueError(f"Odd argument number: expected key/value pairs, got {len(pairs)} items")
        return cls({pairs[i]: pairs[i + 1] for i in range(0, len(pairs), 2)}, origin)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    @property
    def is_empty(self) -> bool:
        return not self._data

    def __repr__(self) -> str:
        return f"ConfigSource(origin={self.origin!r}, keys={len(self._data)})"


def parse_toml_file(path: Path, origin: Optional[str] = None) -> ConfigSource:
    """
    Parse a TOML file into a ConfigSource.

    Raises:
        SourceLoadError: If the file can't be read or parsed
    """
    origin = origin or str(path)
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise SourceLoadError(origin, e) from e
    return ConfigSource(raw, origin)


def _parse_env_value(value: str) -> Any:
    # JSON arrays/objects allow list values (e.g. peer.active) from the environment
    stripped = value.strip()
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    return value


def environment_source(
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Path] = Path(".env"),
) -> ConfigSource:
    """
    Collect ``CHAINCONF__`` prefixed variables into a ConfigSource.

    ``CHAINCONF__peer__privateKey`` maps to ``peer.privateKey``; the case of
    the key after the prefix is preserved. Values from a ``.env`` file are
    read first and real environment variables win over them.
    """
    merged: Dict[str, Optional[str]] = {}
    if dotenv_path is not None and dotenv_path.is_file():
        merged.update(dotenv_values(dotenv_path))
    merged.update(os.environ if environ is None else environ)

    data: Dict[str, Any] = {}
    for name, value in merged.items():
        if not name.startswith(ENV_OVERRIDE_PREFIX) or value is None:
            continue
        parts = [p for p in name[len(ENV_OVERRIDE_PREFIX):].split(ENV_OVERRIDE_SEPARATOR) if p]
        if not parts:
            continue
        data[".".join(parts)] = _parse_env_value(value)
    return ConfigSource(data, "process environment")


class SourceLoader:
    """
    Locates and parses the configuration layers.

    Resources are looked up by name on the resource path: directories passed
    explicitly, then ``$CHAINCONF_RESOURCE_PATH``, then the package's own
    resource directory. The first directory holding the name wins. Test
    resources are only found when a test resource directory is on the path.
    """

    def __init__(
        self,
        resource_dirs: Optional[Sequence[Path]] = None,
        cwd: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Path] = Path(".env"),
    ):
        self.environ: Mapping[str, str] = os.environ if environ is None else environ
        self.cwd = Path.cwd() if cwd is None else Path(cwd)
        if dotenv_path is not None:
            dotenv_path = Path(dotenv_path)
            if not dotenv_path.is_absolute():
                dotenv_path = self.cwd / dotenv_path
        self.dotenv_path = dotenv_path

        dirs: List[Path] = [Path(d) for d in (resource_dirs or [])]
        env_dirs = self.environ.get(ENV_RESOURCE_PATH, "")
        dirs.extend(Path(d) for d in env_dirs.split(os.pathsep) if d.strip())
        dirs.append(PACKAGE_RESOURCE_DIR)
        self.resource_dirs = dirs

    def find_resource(self, name: str) -> Optional[Path]:
        for directory in self.resource_dirs:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None

    def load_resource(self, name: Optional[str]) -> ConfigSource:
        """Load a named resource, or an empty source if it isn't on the resource path."""
        origin = f"resource '{name}'"
        if not name:
            return ConfigSource.empty(origin)
        path = self.find_resource(name)
        if path is None:
            return ConfigSource.empty(origin)
        return self._parse(path, origin)

    def load_file(self, path: Optional[Path]) -> ConfigSource:
        """Load a file, or an empty source if it doesn't exist."""
        origin = f"file '{path}'"
        if path is None:
            return ConfigSource.empty(origin)
        path = Path(path)
        if not path.is_absolute():
            path = self.cwd / path
        if not path.is_file():
            return ConfigSource.empty(origin)
        return self._parse(path, origin)

    def _parse(self, path: Path, origin: str) -> ConfigSource:
        try:
            return parse_toml_file(path, origin)
        except SourceLoadError as e:
            logger.error("%s. Ignoring it.", e)
            return ConfigSource.empty(origin)

    def load_environment(self) -> ConfigSource:
        return environment_source(self.environ, self.dotenv_path)

    def initial_sources(self, api_config: Optional[ConfigSource] = None) -> List[ConfigSource]:
        """
        Load every layer below the process environment, lowest priority first.

        Each layer is logged with a presence flag, never its content.
        """
        res = self.environ.get(ENV_CONF_RES)
        conf_file = self.environ.get(ENV_CONF_FILE)
        api_config = api_config if api_config is not None else ConfigSource.empty("API")

        layers = [
            ("default properties from resource '%s'" % DEFAULT_RESOURCE,
             self.load_resource(DEFAULT_RESOURCE)),
            ("user properties from $%s resource '%s'" % (ENV_CONF_RES, res),
             self.load_resource(res)),
            ("user properties from resource '%s'" % USER_RESOURCE,
             self.load_resource(USER_RESOURCE)),
            ("user properties from file '%s'" % (self.cwd / USER_DIR_CONFIG),
             self.load_file(self.cwd / USER_DIR_CONFIG)),
            ("user properties from $%s file '%s'" % (ENV_CONF_FILE, conf_file),
             self.load_file(Path(conf_file) if conf_file else None)),
            ("test properties from resource '%s'" % TEST_RESOURCE,
             self.load_resource(TEST_RESOURCE)),
            ("test properties from resource '%s'" % TEST_USER_RESOURCE,
             self.load_resource(TEST_USER_RESOURCE)),
            ("config passed via constructor", api_config),
        ]
        for description, source in layers:
            logger.info("Config (%s): %s", " no  " if source.is_empty else " yes ", description)
        return [source for _, source in layers]
