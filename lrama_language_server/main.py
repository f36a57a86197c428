"""
Main entry point for the Lrama Language Server.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from . import version
from .cmd import run_cli
from .server import run_server


logger = logging.getLogger(__name__)


@click.command()
@click.argument(
    "files",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--cli",
    is_flag=True,
    help="Analyze grammar files from the command line instead of serving LSP"
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with an error when warnings are reported (cli only)"
)
@click.option(
    "--validation-cfg",
    type=click.Path(exists=True, path_type=Path),
    help="Optional validation config file (cli only)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose logging"
)
@click.version_option(version=version())
def main(
    files: Tuple[Path, ...],
    cli: bool,
    strict: bool,
    validation_cfg: Optional[Path],
    verbose: bool
) -> None:
    """
    The Lrama language server binary.

    Communicates over stdin/stdout using the Language Server Protocol
    to provide symbol analysis and feedback for Lrama and Bison grammar files.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.debug("Lrama Language Server starting")

    try:
        if cli:
            logger.info("Starting in CLI mode")
            exit_code = run_cli(files, strict, validation_cfg)
            sys.exit(exit_code)
        else:
            logger.info("Starting as LSP server")
            sys.exit(run_server())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
