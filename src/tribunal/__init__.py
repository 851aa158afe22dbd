"""Tribunal - comparative multi-model evaluation.

Recorded interactions of several models on the same scenarios are ranked
side by side by a judge model, then combined into a platform-wide report
of which model to use for which tool.
"""

from tribunal.foundation.errors import ErrorCode, TribunalError

__version__ = "0.1.0"

__all__ = [
    "ErrorCode",
    "TribunalError",
    "__version__",
]
