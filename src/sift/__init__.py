"""Sift - resilient analysis of CSV datasets by a remote analyst."""

from .config import Settings, get_settings
from .core import AnalysisRequest, Deadline, FallbackAnalyzer, InvocationOrchestrator
from .errors import AcquisitionError, SiftError
from .types import InvocationOutcome, InvocationStatus, Turn, TurnRole

__version__ = "0.1.0"

__all__ = [
    "AcquisitionError",
    "AnalysisRequest",
    "Deadline",
    "FallbackAnalyzer",
    "InvocationOrchestrator",
    "InvocationOutcome",
    "InvocationStatus",
    "Settings",
    "SiftError",
    "Turn",
    "TurnRole",
    "get_settings",
]
