"""Main pipeline orchestrator for genoprot"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from genoprot.constants import DEFAULT_EXECUTABLES
from genoprot.core.pipeline_types import (
    PipelineParameters,
    PipelineStep,
    ReferenceBuild,
    Strandedness,
)
from genoprot.core.stage_gate import StageGate
from genoprot.core.steps.definitions import steps_for
from genoprot.core.validation import validate_parameters
from genoprot.exceptions import PipelineError
from genoprot.external.base import ToolRunner
from genoprot.reference.resolver import Fetcher
from genoprot.utils.download import download_and_gunzip
from genoprot.utils.logging import LogTemplates, get_logger
from genoprot.utils.progress import iter_progress

T = TypeVar("T")
R = TypeVar("R")

# Step execution lives in `genoprot.core.steps.*` and is imported lazily by
# wrapper methods on `Pipeline` to keep imports light.


class Pipeline:
    """Run one flow's steps in order, each external stage behind the gate."""

    def __init__(
        self,
        parameters: PipelineParameters,
        runner: Optional[ToolRunner] = None,
        fetch: Fetcher = download_and_gunzip,
        logger: Optional[logging.Logger] = None,
    ):
        self.parameters = parameters
        self.logger = logger or get_logger("Pipeline")
        self.runner = runner or ToolRunner(logger=self.logger.getChild("runner"))
        self.gate = StageGate(self.runner, logger=self.logger.getChild("stage_gate"))
        self.fetch = fetch
        self.steps: List[PipelineStep] = steps_for(parameters.command)
        self.reference: Optional[ReferenceBuild] = None
        self.strandedness_by_group: Dict[str, Strandedness] = {}
        self.results: Dict[str, Any] = {}

    def _set_result(self, key: str, value: Any) -> None:
        self.results[key] = value

    def _get_result(self, key: str, default: Any = None) -> Any:
        return self.results.get(key, default)

    def executable(self, key: str) -> str:
        """Configured executable for a tool key, falling back to the default name."""
        return self.parameters.executables.get(key) or DEFAULT_EXECUTABLES[key]

    def validate(self) -> None:
        """Reject incompatible settings before any stage runs."""
        validate_parameters(self.parameters)

    def enabled_steps(self) -> List[PipelineStep]:
        return [s for s in self.steps if s.is_enabled(self.parameters)]

    def show_steps(self) -> None:
        """Print the flow's steps, marking the ones disabled by the parameters."""
        import click

        flow = self.parameters.command.value
        click.echo(f"genoprot {flow} steps:")
        click.echo("=" * 70)

        name_width = max((len(s.display_name or s.name) for s in self.steps), default=0)
        name_width = max(name_width, 16)
        idx_width = len(str(len(self.steps)))
        for i, step in enumerate(self.steps, 1):
            status = "○" if step.is_enabled(self.parameters) else "-"
            label = step.display_name or step.name
            click.echo(f"{status} Step {i:{idx_width}d}: {label:<{name_width}} - {step.description}")

        click.echo("=" * 70)

    def run_parallel(
        self, func: Callable[[T], R], items: Sequence[T], workers: int
    ) -> List[R]:
        """Apply *func* to *items* on a fixed-size thread pool.

        Every submitted task runs to completion; the first failure (in
        submission order) is raised afterwards.
        """
        if workers <= 1 or len(items) <= 1:
            return [func(item) for item in items]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(func, item) for item in items]
            wait(futures)
        errors = [f.exception() for f in futures if f.exception() is not None]
        if errors:
            if len(errors) > 1:
                self.logger.error(f"{len(errors)} of {len(futures)} parallel tasks failed")
            raise errors[0]
        return [f.result() for f in futures]

    def run(self) -> Dict[str, Any]:
        """Validate, then execute every enabled step of the flow."""
        self.validate()

        if self.parameters.dry_run:
            self.logger.info("Dry run: listing steps without executing them")
            self.show_steps()
            return self.results

        iterator = iter_progress(
            self.steps,
            total=len(self.steps),
            desc=self.parameters.command.value,
            enabled=self.parameters.enable_progress,
        )
        total = len(self.steps)
        start = time.time()
        for step_number, step in enumerate(iterator, 1):
            step_label = step.display_name or step.name
            if not step.is_enabled(self.parameters):
                self.logger.info(
                    LogTemplates.STEP_SKIPPED.format(step_name=step_label, reason="disabled by configuration")
                )
                continue

            self.logger.info(
                LogTemplates.STEP_START.format(step_name=step_label, step_number=step_number, total=total)
            )
            step_start_time = time.time()
            try:
                self._execute_step(step)
            except Exception as e:
                step_duration = time.time() - step_start_time
                self.logger.error(f"Step {step_number} failed: {step_label} ({step_duration:.1f}s)")
                self.logger.error(f"Error: {e}")
                raise PipelineError(f"Pipeline failed at step {step.name}: {e}") from e

            self.logger.info(
                LogTemplates.STEP_SUCCESS.format(step_name=step_label, duration=time.time() - step_start_time)
            )

        self.logger.info(
            f"Pipeline completed in {time.time() - start:.1f}s: "
            f"{self.gate.executed_count} stage(s) executed, {self.gate.skipped_count} skipped"
        )
        return self.results

    def _execute_step(self, step: PipelineStep) -> None:
        method_name = f"_step_{step.name}"
        method = getattr(self, method_name, None)
        if method is None:
            raise PipelineError(f"Step implementation not found: {method_name}")
        method()

    # ===================== STEP IMPLEMENTATIONS =====================

    def _step_prepare_reference(self) -> None:
        from genoprot.core.steps.reference import prepare_reference

        prepare_reference(self)

    def _step_index_reference(self) -> None:
        from genoprot.core.steps.reference import index_reference

        index_reference(self)

    def _step_trim_reads(self) -> None:
        from genoprot.core.steps.reads import trim_reads

        trim_reads(self)

    def _step_align_reads(self) -> None:
        from genoprot.core.steps.reads import align_reads

        align_reads(self)

    def _step_resolve_strandedness(self) -> None:
        from genoprot.core.steps.reads import resolve_strandedness

        resolve_strandedness(self)

    def _step_fusion_align(self) -> None:
        from genoprot.core.steps.reads import fusion_align

        fusion_align(self)

    def _step_call_fusions(self) -> None:
        from genoprot.core.steps.reads import call_fusions

        call_fusions(self)

    def _step_call_variants(self) -> None:
        from genoprot.core.steps.variants import call_variants

        call_variants(self)

    def _step_annotate_variants(self) -> None:
        from genoprot.core.steps.variants import annotate_variants

        annotate_variants(self)

    def _step_build_protein_database(self) -> None:
        from genoprot.core.steps.variants import build_protein_database

        build_protein_database(self)

    def _step_assemble_isoforms(self) -> None:
        from genoprot.core.steps.transcripts import assemble_isoforms

        assemble_isoforms(self)

    def _step_assemble_transcripts(self) -> None:
        from genoprot.core.steps.transcripts import assemble_transcripts

        assemble_transcripts(self)

    def _step_classify_lncrnas(self) -> None:
        from genoprot.core.steps.transcripts import classify_lncrnas

        classify_lncrnas(self)

    def _step_prepare_quantification_reference(self) -> None:
        from genoprot.core.steps.quantify import prepare_quantification_reference

        prepare_quantification_reference(self)

    def _step_quantify_expression(self) -> None:
        from genoprot.core.steps.quantify import quantify_expression

        quantify_expression(self)
