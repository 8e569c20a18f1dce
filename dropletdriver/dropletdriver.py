#!/usr/bin/env python3
"""Droplet lifecycle driver: CLI entrypoint."""

import argparse

from dropletdriver.commands.instance import register_create_command, register_destroy_command
from dropletdriver.logging_setup import setup_cli_logging


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create and destroy DigitalOcean droplets for test instances")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_create_command(subparsers)
    register_destroy_command(subparsers)

    args = parser.parse_args(argv)
    setup_cli_logging(verbose=args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
