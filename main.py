#!/usr/bin/env python3
"""
Main entry point for the tool provisioner.
"""

import asyncio
import argparse
import logging
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from provisioner.core.environment import environ_to_assignments
from provisioner.core.orchestrator import install_tools
from provisioner.errors import ProvisionerError
from provisioner.models.tool import InstallSpec
from provisioner.utils.logging import setup_root_logger
from config.settings import Settings


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Install build tools from a declarative spec"
    )

    parser.add_argument(
        "--spec",
        type=Path,
        required=True,
        help="Path to the install spec (YAML or JSON)"
    )

    parser.add_argument(
        "--workspace",
        type=Path,
        help="Working directory for install scripts (default: current directory)"
    )

    parser.add_argument(
        "--env",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Base environment assignment; repeatable (default: the current environment)"
    )

    parser.add_argument(
        "--secret-env",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Secret environment assignment; repeatable"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        help="Deadline for the whole install step in seconds"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from settings, INFO)"
    )

    return parser.parse_args(argv)


def load_settings(args) -> Settings:
    """Load settings from the environment and apply command line overrides."""
    overrides = {}
    if args.workspace:
        overrides["workspace"] = args.workspace
    if args.timeout:
        overrides["step_timeout"] = args.timeout
    settings = Settings(**overrides)
    if args.log_level:
        settings.logging.level = args.log_level
    return settings


async def run(args) -> int:
    """Run the install step; returns the process exit code."""
    settings = load_settings(args)
    setup_root_logger(
        settings.logging.file_path,
        settings.logging.level,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )
    logger = logging.getLogger(__name__)

    base_envs = args.env if args.env is not None else environ_to_assignments(dict(os.environ))

    try:
        spec = InstallSpec.from_file(args.spec)
        summary = await install_tools(spec, settings, base_envs=base_envs, secret_envs=args.secret_env)
    except ProvisionerError as e:
        logger.error(f"Tool install failed: {e}")
        return 1
    except asyncio.TimeoutError:
        logger.error(f"Tool install did not finish within {settings.step_timeout} seconds")
        return 1

    logger.info(f"Installed {summary.succeeded}/{summary.total_tools} tools "
                f"in {summary.duration_seconds:.2f} seconds")
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
