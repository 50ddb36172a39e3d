"""Operating system boundary: subprocesses and files."""

from .files import atomic_write_text
from .process import ProcessError, run

__all__ = ["ProcessError", "atomic_write_text", "run"]
