"""Driver configuration: defaults, environment values and explicit overrides."""

import logging
import os
import re
from dataclasses import dataclass, fields

import yaml

from dropletdriver.errors import ConfigurationError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_ENV = "DIGITALOCEAN_ACCESS_TOKEN"
SSH_KEY_IDS_ENV = "DIGITALOCEAN_SSH_KEY_IDS"

DEFAULT_API_URL = "https://api.digitalocean.com"
DEFAULT_SIZE = "512mb"
DEFAULT_REGION = "nyc2"
DEFAULT_USERNAME = "root"
DEFAULT_PORT = 22

# Platform names like "ubuntu-14-04-x64" are also valid image slugs.
IMAGE_PLATFORM_RE = re.compile(r"^[a-z][a-z0-9]*-\d+(?:[-.]\d+)*-(?:x64|x32)$")

# Option names accepted from config files and kitchen-style configs.
_ALIASES = {
    "flavor": "size",
    "digitalocean_access_token": "access_token",
}


@dataclass(frozen=True)
class DriverConfig:
    """Resolved driver options. Built once per driver."""

    image: str | None = None
    size: str = DEFAULT_SIZE
    region: str = DEFAULT_REGION
    username: str = DEFAULT_USERNAME
    port: int = DEFAULT_PORT
    server_name: str | None = None
    ssh_key_ids: str | None = None
    access_token: str | None = None

    # Provider extras, sent only when set
    private_networking: bool | None = None
    ipv6: bool | None = None
    monitoring: bool | None = None
    user_data: str | None = None
    tags: tuple[str, ...] | None = None

    api_url: str = DEFAULT_API_URL
    ready_timeout: float = 600
    ready_interval: float = 5
    ssh_timeout: float = 300
    ssh_interval: float = 5

    def __getitem__(self, key):
        key = _ALIASES.get(key, key)
        if key not in _field_names():
            raise KeyError(key)
        return getattr(self, key)


def _field_names():
    return {f.name for f in fields(DriverConfig)}


def default_image(platform):
    """Return the platform name if it doubles as an image slug, else None."""
    if platform and IMAGE_PLATFORM_RE.match(platform):
        return platform
    return None


def resolve_config(overrides=None, platform=None, environ=None):
    """Merge explicit overrides, environment values and defaults.

    Precedence, highest first: *overrides*, *environ*, built-in defaults.
    Pure function of its arguments; pass ``os.environ`` explicitly.

    Raises:
        ConfigurationError: on an unknown option name.
    """
    environ = environ if environ is not None else {}
    values = {}

    image = default_image(platform)
    if image:
        values["image"] = image
    if environ.get(SSH_KEY_IDS_ENV):
        values["ssh_key_ids"] = environ[SSH_KEY_IDS_ENV]
    if environ.get(ACCESS_TOKEN_ENV):
        values["access_token"] = environ[ACCESS_TOKEN_ENV]

    known = _field_names()
    for key, value in (overrides or {}).items():
        name = _ALIASES.get(key, key)
        if name not in known:
            raise ConfigurationError(f"Unknown driver option '{key}'")
        if value is None:
            continue
        values[name] = value

    if "port" in values:
        try:
            values["port"] = int(values["port"])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid port: {values['port']!r}") from e
    if "ssh_key_ids" in values and isinstance(values["ssh_key_ids"], (list, tuple)):
        values["ssh_key_ids"] = ",".join(str(k) for k in values["ssh_key_ids"])
    if "tags" in values:
        tags = values["tags"]
        values["tags"] = tuple(tags.split(",")) if isinstance(tags, str) else tuple(tags)

    return DriverConfig(**values)


def require_provisioning_options(config):
    """Raise ConfigurationError naming every option ``create`` cannot do without."""
    missing = []
    if not config.access_token:
        missing.append(f"access_token (or ${ACCESS_TOKEN_ENV})")
    if not config.ssh_key_ids:
        missing.append(f"ssh_key_ids (or ${SSH_KEY_IDS_ENV})")
    if not config.image:
        missing.append("image")
    if missing:
        raise ConfigurationError(f"Missing required driver option(s): {', '.join(missing)}")


def load_driver_config(config_path):
    """Load driver options from a YAML file.

    Accepts either a flat mapping or a kitchen-style file with the options
    under a top-level ``driver:`` key.
    """
    config_path = os.path.expanduser(config_path)
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file '{config_path}' not found.") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing YAML config: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file '{config_path}' must contain a mapping.")
    driver = data.get("driver", data)
    if not isinstance(driver, dict):
        raise ConfigurationError(f"'driver' section in '{config_path}' must be a mapping.")
    driver = {k: v for k, v in driver.items() if k != "name"}
    logger.debug(f"Loaded {len(driver)} driver option(s) from {config_path}")
    return driver
