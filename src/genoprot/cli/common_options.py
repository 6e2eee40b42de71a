"""Shared Click options for the genoprot flow commands.

Every option defaults to ``None`` and flags only switch features on, so an
unset option never overrides the value from a configuration file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, TypeVar

import click

from genoprot.core.pipeline_types import ExperimentType

F = TypeVar("F", bound=Callable[..., None])


def _apply(func: F, decorators: List[Callable[[F], F]]) -> F:
    # Click applies decorators bottom-up
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def config_option(func: F) -> F:
    """Configuration file option."""
    return click.option(
        "-c",
        "--config",
        type=click.Path(exists=True, path_type=Path),
        help="Configuration file (YAML)",
    )(func)


def reference_option(func: F) -> F:
    return click.option(
        "-r",
        "--reference",
        default=None,
        help="Reference build: GRCh37 or GRCh38 [default: GRCh38]",
    )(func)


def analysis_dir_option(func: F) -> F:
    return click.option(
        "-o",
        "--analysis-dir",
        type=click.Path(path_type=Path),
        default=None,
        help="Directory for per-run outputs [default: genoprot_output]",
    )(func)


def data_dir_option(func: F) -> F:
    return click.option(
        "-d",
        "--data-dir",
        type=click.Path(path_type=Path),
        default=None,
        help="Directory for downloaded references and indices [default: genoprot_data]",
    )(func)


def fastq_options(func: F) -> F:
    """Read file options (comma-separated, one entry per sample)."""
    return _apply(
        func,
        [
            click.option(
                "--fastq1",
                default=None,
                help="First-mate (or single-end) read files, comma-separated",
            ),
            click.option(
                "--fastq2",
                default=None,
                help="Second-mate read files, comma-separated, in fastq1 order",
            ),
        ],
    )


def experiment_type_option(func: F) -> F:
    return click.option(
        "-e",
        "--experiment-type",
        type=click.Choice([e.value for e in ExperimentType], case_sensitive=False),
        default=None,
        help="Sequencing experiment type [default: RNASequencing]",
    )(func)


def threads_option(func: F) -> F:
    """Threads option."""
    return click.option(
        "-t",
        "--threads",
        type=int,
        default=None,
        help="Threads passed to each external tool [default: 1]",
    )(func)


def strandedness_options(func: F) -> F:
    return _apply(
        func,
        [
            click.option(
                "--strand-specific",
                is_flag=True,
                help="Library is forward stranded; skips inference",
            ),
            click.option(
                "--infer-strandedness",
                is_flag=True,
                help="Infer the strand protocol from a subset of aligned reads",
            ),
        ],
    )


def reference_file_options(func: F) -> F:
    """Pre-supplied reference artifacts."""
    return _apply(
        func,
        [
            click.option(
                "--genome-fasta",
                type=click.Path(exists=True, path_type=Path),
                default=None,
                help="Genome FASTA to use instead of the Ensembl download",
            ),
            click.option(
                "--gene-model",
                type=click.Path(exists=True, path_type=Path),
                default=None,
                help="GTF/GFF3 gene model to use instead of the Ensembl download",
            ),
            click.option(
                "--star-index-dir",
                type=click.Path(path_type=Path),
                default=None,
                help="Existing (or target) STAR genome index directory",
            ),
        ],
    )


def alignment_options(func: F) -> F:
    return _apply(
        func,
        [
            click.option(
                "--overwrite-alignments",
                is_flag=True,
                help="Delete and regenerate existing alignments",
            ),
            click.option(
                "--read-subset",
                type=int,
                default=None,
                help="Align only the first N reads (enables read subsetting)",
            ),
        ],
    )


def dry_run_option(func: F) -> F:
    return click.option(
        "--dry-run",
        is_flag=True,
        help="Validate and list the flow's steps without executing",
    )(func)


def star_fusion_lib_option(func: F) -> F:
    return click.option(
        "--star-fusion-lib-dir",
        type=click.Path(exists=True, path_type=Path),
        default=None,
        help="STAR-Fusion CTAT genome library directory",
    )(func)


def common_flow_options(func: F) -> F:
    """Apply the options every flow command accepts.

    Usage:
        @click.command()
        @common_flow_options
        def lncrna(config, reference, analysis_dir, ...):
            pass
    """
    return _apply(
        func,
        [
            config_option,
            reference_option,
            analysis_dir_option,
            data_dir_option,
            fastq_options,
            experiment_type_option,
            threads_option,
            strandedness_options,
            reference_file_options,
            alignment_options,
            dry_run_option,
        ],
    )
