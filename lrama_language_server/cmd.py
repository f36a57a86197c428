"""
Command line interface for the Lrama Language Server.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import Config
from .analysis import analyze
from .lsp_data import LramaDiagnosticSeverity


logger = logging.getLogger(__name__)

GRAMMAR_SUFFIXES = (".y", ".yy")


def discover_grammar_files(root: Path) -> list:
    """Find grammar files below a directory."""
    return sorted(
        path for path in root.rglob("*")
        if path.is_file() and path.suffix.lower() in GRAMMAR_SUFFIXES
    )


def run_cli(
    files: Sequence[Path],
    strict: bool = False,
    validation_cfg_path: Optional[Path] = None
) -> int:
    """
    Run the server's analysis in command line mode.

    Args:
        files: Grammar files to analyze; the current directory is searched when empty
        strict: Whether warnings make the run fail
        validation_cfg_path: Optional path to validation configuration file

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    logger.debug("Running Lrama Language Server in CLI mode")

    try:
        config = Config()
        if validation_cfg_path:
            config.load_validation_config(validation_cfg_path)
        policy = config.build_policy()

        grammar_files = list(files) or discover_grammar_files(Path.cwd())
        if not grammar_files:
            logger.warning("No grammar files found in current directory")
            return 0

        logger.info(f"Found {len(grammar_files)} grammar files to analyze")

        total_errors = 0
        total_warnings = 0
        total_infos = 0

        for grammar_file in grammar_files:
            logger.info(f"Analyzing {grammar_file}")

            try:
                content = grammar_file.read_text(encoding='utf-8')
            except OSError as e:
                logger.error(f"Failed to read {grammar_file}: {e}")
                total_errors += 1
                continue

            analysis = analyze(content, policy, config.rule_configs)

            for diagnostic in analysis.diagnostics:
                # Humans count lines and columns from one
                print(
                    f"{grammar_file}:{diagnostic.line + 1}:{diagnostic.column + 1}: "
                    f"{diagnostic.severity.value}: {diagnostic.message}"
                )
                if diagnostic.severity == LramaDiagnosticSeverity.ERROR:
                    total_errors += 1
                elif diagnostic.severity == LramaDiagnosticSeverity.WARNING:
                    total_warnings += 1
                else:
                    total_infos += 1

        if total_errors > 0 or total_warnings > 0 or total_infos > 0:
            print(f"\nSummary: {total_errors} errors, {total_warnings} warnings, {total_infos} notes")
        else:
            print(f"\nAll {len(grammar_files)} files analyzed successfully")

        if total_errors > 0:
            return 1
        if strict and total_warnings > 0:
            return 1
        return 0

    except Exception as e:
        logger.error(f"CLI analysis failed: {e}", exc_info=True)
        return 1
