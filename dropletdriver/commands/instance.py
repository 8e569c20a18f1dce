"""Instance CLI handlers: create and destroy a droplet for a test instance."""

import logging
import sys

from dropletdriver.config import load_driver_config
from dropletdriver.driver import DigitalOceanDriver
from dropletdriver.errors import DriverError, StateError
from dropletdriver.redact import add_secret
from dropletdriver.state import InstanceContext, default_state_path, load_state, save_state

logger = logging.getLogger(__name__)

# CLI flags that override driver options of the same name
_OVERRIDE_FLAGS = ("image", "size", "region", "server_name", "ssh_key_ids", "port", "username")


def _build_overrides(args):
    """Merge the config file (if any) with CLI flags; flags win."""
    overrides = load_driver_config(args.config) if args.config else {}
    for option in _OVERRIDE_FLAGS:
        value = getattr(args, option, None)
        if value is not None:
            overrides[option] = value
    return overrides


def _make_driver(args):
    overrides = _build_overrides(args)
    instance = InstanceContext(name=args.instance, platform=getattr(args, "platform", "") or "")
    driver = DigitalOceanDriver(overrides, instance)
    add_secret(driver.config.access_token or "")
    return driver


def _state_path(args):
    return args.state or default_state_path(args.instance)


def _load_state_or_exit(state_path):
    try:
        return load_state(state_path)
    except StateError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


# ── CLI handlers ───────────────────────────────────────────────────


def handle_create(args):
    """CLI handler for 'create'."""
    state_path = _state_path(args)
    state = _load_state_or_exit(state_path)
    driver = None
    try:
        driver = _make_driver(args)
        driver.create(state)
    except DriverError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    finally:
        # Persist whatever was recorded, including a server_id from a partial create
        save_state(state_path, state)
        if driver is not None:
            driver.close()

    logger.info(f"Host:     {state['hostname']}")
    logger.info(f"Connect:  ssh -p {driver.config.port} {driver.config.username}@{state['hostname']}")


def handle_destroy(args):
    """CLI handler for 'destroy'."""
    state_path = _state_path(args)
    state = _load_state_or_exit(state_path)
    if not state.get("server_id"):
        logger.info(f"No server recorded in {state_path}; nothing to destroy.")
        return
    try:
        with _make_driver(args) as driver:
            driver.destroy(state)
    except DriverError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    save_state(state_path, state)


# ── Registration ───────────────────────────────────────────────────


def _add_common_args(parser):
    parser.add_argument("--instance", required=True, help="Logical test instance name")
    parser.add_argument("--config", default=None, help="YAML file with driver options (flat or under 'driver:')")
    parser.add_argument("--state", default=None, help="State file (default: .kitchen/<instance>.json)")


def register_create_command(subparsers):
    """Register the 'create' subcommand."""
    parser = subparsers.add_parser("create", help="Create a droplet and wait until it is reachable")
    _add_common_args(parser)
    parser.add_argument("--platform", default="", help="Platform name (e.g. ubuntu-14-04-x64); used as default image")
    parser.add_argument("--image", default=None, help="Image slug")
    parser.add_argument("--size", default=None, help="Droplet size slug (default: 512mb)")
    parser.add_argument("--region", default=None, help="Region slug (default: nyc2)")
    parser.add_argument("--server-name", default=None, help="Droplet name (default: generated)")
    parser.add_argument("--ssh-key-ids", default=None, help="Comma-separated SSH key ids (fallback: DIGITALOCEAN_SSH_KEY_IDS)")
    parser.add_argument("--username", default=None, help="SSH username (default: root)")
    parser.add_argument("--port", type=int, default=None, help="Port to wait for (default: 22)")
    parser.set_defaults(func=handle_create)


def register_destroy_command(subparsers):
    """Register the 'destroy' subcommand."""
    parser = subparsers.add_parser("destroy", help="Destroy the droplet recorded in the state file")
    _add_common_args(parser)
    parser.set_defaults(func=handle_destroy)
