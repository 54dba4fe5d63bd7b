"""External build system drivers."""

from .base import Builder, BuildRequest
from .cmake import CMakeBuilder

__all__ = ["BuildRequest", "Builder", "CMakeBuilder"]
