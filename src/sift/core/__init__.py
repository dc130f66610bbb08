"""Core invocation flow for Sift."""

from sift.types import AnalysisRequest

from .completion import CompletionDetector
from .deadline import Deadline
from .fallback import DegradedResult, FallbackAnalyzer
from .orchestrator import InvocationOrchestrator
from .session import HandleState, SessionHandle, SessionLease, SessionSpec
from .turn_stream import StopReason, StreamRead, TurnStreamReader, read_turns

__all__ = [
    "AnalysisRequest",
    "CompletionDetector",
    "Deadline",
    "DegradedResult",
    "FallbackAnalyzer",
    "HandleState",
    "InvocationOrchestrator",
    "SessionHandle",
    "SessionLease",
    "SessionSpec",
    "StopReason",
    "StreamRead",
    "TurnStreamReader",
    "read_turns",
]
