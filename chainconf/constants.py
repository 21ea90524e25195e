"""
chainconf Constants

Environment variable names, resource names, sizes and logger settings used
across the package. Logger settings come from a ``.env`` file in the
working directory when present; anything it doesn't set keeps its default.
"""
from pathlib import Path

from dotenv import dotenv_values

# ==============================================================================
# LOGGER SETTINGS (.env)
# ==============================================================================
_dotenv = dotenv_values(".env")

_TRUTHY = {"1", "true", "yes", "on"}


def _dotenv_setting(name: str, default: str) -> str:
    value = _dotenv.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _dotenv_flag(name: str, default: bool) -> bool:
    value = _dotenv.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().casefold() in _TRUTHY


DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

LOG_LEVEL = _dotenv_setting("LOG_LEVEL", "INFO")
LOG_FORMAT = _dotenv_setting("LOG_FORMAT", DEFAULT_LOG_FORMAT)
LOG_DATE_FORMAT = _dotenv_setting("LOG_DATE_FORMAT", DEFAULT_LOG_DATE_FORMAT)
LOG_CONSOLE_HIGHLIGHTING = _dotenv_flag("LOG_CONSOLE_HIGHLIGHTING", True)
LOG_FILE_OUTPUT = _dotenv_flag("LOG_FILE_OUTPUT", False)

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# ==============================================================================
# CONFIGURATION SOURCES
# ==============================================================================
# Directory holding the embedded defaults shipped with the package
PACKAGE_RESOURCE_DIR = Path(__file__).parent / "resources"

DEFAULT_RESOURCE = "chainconf.toml"
USER_RESOURCE = "user.toml"
TEST_RESOURCE = "test-chainconf.toml"
TEST_USER_RESOURCE = "test-user.toml"

# <cwd>/config/chainconf.toml
USER_DIR_CONFIG = Path("config") / "chainconf.toml"

# Name of a resource to layer above the defaults
ENV_CONF_RES = "CHAINCONF_CONF_RES"
# Path of a file to layer above the user sources
ENV_CONF_FILE = "CHAINCONF_CONF_FILE"
# Extra resource directories (os.pathsep separated), searched before the package
ENV_RESOURCE_PATH = "CHAINCONF_RESOURCE_PATH"
# CHAINCONF__peer__listen__port=30304 -> peer.listen.port
ENV_OVERRIDE_PREFIX = "CHAINCONF__"
ENV_OVERRIDE_SEPARATOR = "__"


# ==============================================================================
# NODE IDENTITY
# ==============================================================================
NODE_ID_FILE = "nodeId.properties"
NODE_ID_PRIVATE_KEY_PROPERTY = "nodeIdPrivateKey"
NODE_ID_PROPERTY = "nodeId"
NODE_ID_FILE_COMMENT = (
    "Generated NodeID. To use your own nodeId please refer to "
    "'peer.privateKey' config option."
)

PRIVATE_KEY_SIZE = 32
NODE_ID_SIZE = 64
COINBASE_SIZE = 20
MAX_EXTRA_DATA_SIZE = 32

ENODE_SCHEME = "enode://"

# Fallback when the bind address can't be probed
BIND_IP_FALLBACK = "0.0.0.0"
BIND_IP_PROBE_HOST = ("www.google.com", 80)
EXTERNAL_IP_SERVICE = "http://checkip.amazonaws.com"


