"""
Shared CLI Context
==================

Logging setup and the build configuration/collaborator options that
rosbuild and rosconv both accept.
"""

import logging
from typing import Optional

import click

from romanos_sdk.config import BuildConfig


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
        force=True,
    )


def collaborator_options(func):
    """Add --assembler/--generator/--optimizer import-path options."""
    func = click.option(
        "--optimizer",
        metavar="MODULE:ATTR",
        default=None,
        help="x86 optimizer import path (env: ROMANOS_OPTIMIZER; default: none).",
    )(func)
    func = click.option(
        "--generator",
        metavar="MODULE:ATTR",
        default=None,
        help="x86 code generator import path (env: ROMANOS_NATIVE_GENERATOR).",
    )(func)
    func = click.option(
        "--assembler",
        metavar="MODULE:ATTR",
        default=None,
        help="Romasm source assembler import path (env: ROMANOS_ASSEMBLER).",
    )(func)
    return func


def apply_collaborator_options(
    config: BuildConfig,
    assembler: Optional[str],
    generator: Optional[str],
    optimizer: Optional[str],
) -> BuildConfig:
    """Command-line import paths override the environment."""
    if assembler:
        config.assembler = assembler
    if generator:
        config.native_generator = generator
    if optimizer:
        config.optimizer = optimizer
    return config
