"""Inspection operations run by the command pipeline."""

from schema_inspector.inspect.coverage import run_coverage
from schema_inspector.inspect.diff import run_diff
from schema_inspector.inspect.similar import run_similar
from schema_inspector.inspect.validate import ValidateOptions, run_validate

__all__ = ["ValidateOptions", "run_coverage", "run_diff", "run_similar", "run_validate"]
