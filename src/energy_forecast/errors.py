"""
Error taxonomy for the forecasting pipeline.

Every fatal error names the stage that raised it so a failed batch run
reports where it stopped. Data-quality errors also derive from ValueError.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every error raised by the pipeline stages"""


class FetchError(PipelineError):
    """Remote CSV could not be downloaded or parsed"""


class SchemaError(FetchError, ValueError):
    """Downloaded CSV is missing expected columns"""


class ParseError(PipelineError, ValueError):
    """Value is neither numeric nor the "Not Available" sentinel"""


class DomainError(PipelineError, ValueError):
    """Logarithm requested on a non-positive value"""


class InsufficientDataError(PipelineError, ValueError):
    """Series too short (or absent) for the requested seasonal model"""


class GapError(PipelineError, ValueError):
    """Monthly series has missing months between its first and last date"""


class NoConvergentModelError(PipelineError, RuntimeError):
    """Every candidate model specification failed to fit"""

    def __init__(self, message: str, failures=None):
        super().__init__(message)
        self.failures = list(failures or [])
