"""Shared pipeline execution helpers for the CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import click

from genoprot.config import Config, build_parameters, load_config, save_config
from genoprot.core.pipeline_types import Flow, ResultKeys
from genoprot.utils.logging import resolve_level, setup_logging

_PERFORMANCE_KEYS = ("threads", "variant_calling_workers", "group_workers")


@dataclass
class PipelineOptions:
    """Container for one flow command's options."""

    command: Flow
    config_path: Optional[Path] = None
    # Config field name -> CLI value; None means "not given"
    overrides: Dict[str, Any] = field(default_factory=dict)
    dry_run: bool = False
    verbose: int = 0
    log_file: Optional[Path] = None


def apply_overrides(cfg: Config, overrides: Dict[str, Any]) -> Config:
    """Apply CLI values over the loaded configuration.

    Priority: CLI arg (if provided) > config file > default.
    """
    for key, value in overrides.items():
        if value is None or value is False:
            continue
        if key in _PERFORMANCE_KEYS:
            setattr(cfg.performance, key, value)
        elif key == "read_subset":
            cfg.read_subset = value
            cfg.use_read_subset = True
        elif hasattr(cfg, key):
            setattr(cfg, key, value)
        else:
            raise click.UsageError(f"Unknown option {key}")
    return cfg


def _configure_logging(cfg: Config, opts: PipelineOptions) -> None:
    level = resolve_level(cfg.runtime.log_level, opts.verbose)
    setup_logging(level=level, log_file=opts.log_file or cfg.runtime.log_file)


def execute_pipeline(opts: PipelineOptions, logger: logging.Logger) -> Dict[str, Any]:
    """Build the configuration, validate it and run (or list) the flow."""
    cfg = load_config(opts.config_path) if opts.config_path else Config()
    cfg.command = opts.command.value
    apply_overrides(cfg, opts.overrides)
    if opts.dry_run:
        cfg.runtime.dry_run = True
    if opts.command is Flow.STRANDEDNESS:
        cfg.infer_strandedness = True

    _configure_logging(cfg, opts)
    cfg.validate()
    parameters = build_parameters(cfg)

    from genoprot.core.pipeline import Pipeline

    pipeline = Pipeline(parameters)
    pipeline.validate()
    if not parameters.dry_run:
        try:
            parameters.analysis_dir.mkdir(parents=True, exist_ok=True)
            save_config(cfg, parameters.analysis_dir / f"{opts.command.value}.config.yaml")
        except OSError as exc:
            logger.warning(f"Could not save config: {exc}")

    results = pipeline.run()
    if parameters.dry_run:
        return results

    click.echo(
        f"genoprot {opts.command.value} finished: {pipeline.gate.executed_count} stage(s) run, "
        f"{pipeline.gate.skipped_count} already complete"
    )
    for name, value in (results.get(ResultKeys.STRANDEDNESS) or {}).items():
        click.echo(f"  {name}: strandedness {value}")
    database = results.get(ResultKeys.PROTEIN_DATABASE)
    if database:
        click.echo(f"  Protein database: {database}")
    click.echo(f"  Outputs in: {parameters.analysis_dir.absolute()}")
    return results
