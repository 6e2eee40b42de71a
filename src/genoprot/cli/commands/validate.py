"""Configuration and installation validation command."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from genoprot import __version__
from genoprot.cli.exit_codes import EXIT_ERROR


@click.command()
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path),
              help="Configuration file to check")
@click.option("--full", is_flag=True, help="Also check that the flow's external tools are installed")
def validate(config: Optional[Path], full: bool) -> None:
    """Check a configuration (and optionally installed tools) without running."""
    from genoprot.config import build_parameters, load_config
    from genoprot.core.validation import parameter_problems
    from genoprot.exceptions import GenoprotError
    from genoprot.utils.dependency_checker import DependencyChecker, active_features

    click.echo(f"genoprot {__version__}")
    issues = []
    parameters = None
    if config:
        try:
            cfg = load_config(config)
            cfg.validate()
            parameters = build_parameters(cfg)
            issues.extend(parameter_problems(parameters))
        except GenoprotError as exc:
            issues.append(str(exc))

    if full:
        checker = DependencyChecker(executables=parameters.executables if parameters else None)
        flow = parameters.command if parameters is not None else None
        active = active_features(parameters) if parameters is not None else None
        try:
            checker.require(flow, active)
        except GenoprotError as exc:
            issues.append(str(exc))
        checker.print_report()

    if issues:
        click.echo("✗ Issues found:")
        for issue in issues:
            click.echo(f"  - {issue}")
        sys.exit(EXIT_ERROR)
    click.echo("✓ All checks passed!")
