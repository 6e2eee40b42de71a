"""genoprot: orchestration of proteogenomic database pipelines."""

from genoprot.__version__ import __version__

__all__ = ["__version__"]
