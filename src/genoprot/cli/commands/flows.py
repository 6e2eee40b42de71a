"""Flow subcommands: proteins, lncrna, fusion, quantify and strandedness."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import click

from genoprot.core.pipeline_types import Flow
from genoprot.utils.logging import get_logger

from ..common_options import common_flow_options, star_fusion_lib_option
from ..pipeline import PipelineOptions, execute_pipeline


def _run_flow(ctx: click.Context, flow: Flow, options: Dict[str, Any]) -> None:
    obj = ctx.obj or {}
    config_path: Optional[Path] = options.pop("config", None)
    dry_run = bool(options.pop("dry_run", False))
    opts = PipelineOptions(
        command=flow,
        config_path=config_path,
        overrides=options,
        dry_run=dry_run,
        verbose=obj.get("verbose", 0),
        log_file=obj.get("log_file"),
    )
    execute_pipeline(opts, get_logger("cli"))


@click.command()
@common_flow_options
@click.option("--protein-fasta", type=click.Path(exists=True, path_type=Path), default=None,
              help="Reference protein FASTA to use instead of the Ensembl download")
@click.option("--known-sites-vcf", type=click.Path(exists=True, path_type=Path), default=None,
              help="Known variant sites passed to HaplotypeCaller (--dbsnp)")
@click.option("--snpeff-database", default=None, help="snpEff database name [default: per build]")
@click.option("--skip-variant-analysis", is_flag=True, help="Skip variant calling and annotation")
@click.option("--isoforms", "do_isoform_analysis", is_flag=True,
              help="Also run reference-guided isoform assembly")
@click.option("--fusions", "do_fusion_analysis", is_flag=True, help="Also run fusion detection")
@star_fusion_lib_option
@click.option("--variant-calling-workers", type=int, default=None,
              help="Concurrent HaplotypeCaller partitions [default: 1]")
@click.option("--min-peptide-length", type=int, default=None,
              help="Shortest protein written to the database [default: 7]")
@click.pass_context
def proteins(ctx: click.Context, **options: Any) -> None:
    """Build a sample-specific protein database from sequencing reads."""
    _run_flow(ctx, Flow.PROTEINS, options)


@click.command()
@common_flow_options
@click.pass_context
def lncrna(ctx: click.Context, **options: Any) -> None:
    """Assemble transcripts and classify long noncoding RNAs (slncky)."""
    _run_flow(ctx, Flow.LNCRNA, options)


@click.command()
@common_flow_options
@star_fusion_lib_option
@click.pass_context
def fusion(ctx: click.Context, **options: Any) -> None:
    """Detect gene fusions with STAR chimeric alignment and STAR-Fusion."""
    _run_flow(ctx, Flow.FUSION, options)


@click.command()
@common_flow_options
@click.option("--group-workers", type=int, default=None,
              help="Samples quantified concurrently [default: 1]")
@click.pass_context
def quantify(ctx: click.Context, **options: Any) -> None:
    """Quantify transcript and gene expression per sample (RSEM)."""
    _run_flow(ctx, Flow.QUANTIFY, options)


@click.command()
@common_flow_options
@click.pass_context
def strandedness(ctx: click.Context, **options: Any) -> None:
    """Infer and report the library strand protocol of each sample."""
    _run_flow(ctx, Flow.STRANDEDNESS, options)


@click.command(name="show-steps")
@click.argument("flow", type=click.Choice([f.value for f in Flow], case_sensitive=False))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path),
              help="Configuration file whose toggles mark steps enabled/disabled")
def show_steps(flow: str, config: Optional[Path]) -> None:
    """Show the steps of FLOW without running anything."""
    from genoprot.config import Config, build_parameters, load_config
    from genoprot.core.pipeline import Pipeline

    cfg = load_config(config) if config else Config()
    cfg.command = flow
    Pipeline(build_parameters(cfg)).show_steps()
