"""Version information for genoprot."""

__version__ = "0.1.0"
__description__ = "Sample-specific proteogenomic database pipelines from sequencing reads"
