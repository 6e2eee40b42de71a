"""Utility functions (genoprot)."""

from genoprot.utils.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
