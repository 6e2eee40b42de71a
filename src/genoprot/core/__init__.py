"""Core pipeline functionality (genoprot)."""

from genoprot.core.pipeline_types import (
    Flow,
    PipelineParameters,
    PipelineStep,
    ReferenceBuild,
    ResultKeys,
)

__all__ = ["Flow", "PipelineParameters", "PipelineStep", "ReferenceBuild", "ResultKeys"]
