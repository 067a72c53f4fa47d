"""
Execution module for dingus.
Handles process execution, output capture and action sequencing.
"""

from .output_capture import OutputCapture, CaptureMode, CaptureResult
from .process import ProcessRunner, ProcessResult
from .actions import ActionExecutor, ExecutionPolicy

__all__ = [
    "OutputCapture",
    "CaptureMode",
    "CaptureResult",
    "ProcessRunner",
    "ProcessResult",
    "ActionExecutor",
    "ExecutionPolicy",
]
