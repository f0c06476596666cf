"""
Core domain types and errors.
"""

from .errors import AnalysisError, ExportError, ImageTooLargeError, InputValidationError, MirrorError
from .models import (
    AnalysisRequest,
    AnalysisResult,
    AnalysisStatus,
    Analyzing,
    Completed,
    Failed,
    Idle,
    LifecycleState,
)

__all__ = [
    'AnalysisError', 'ExportError', 'ImageTooLargeError', 'InputValidationError', 'MirrorError',
    'AnalysisRequest', 'AnalysisResult', 'AnalysisStatus',
    'Analyzing', 'Completed', 'Failed', 'Idle', 'LifecycleState',
]
