"""
Output capture helpers for processes whose stdout becomes a value.

Text mode strips trailing line terminators; lines mode splits into a list.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class CaptureMode(str, Enum):
    """How captured stdout is turned into a value."""
    TEXT = "text"
    LINES = "lines"


@dataclass
class CaptureResult:
    """Decoded stdout in the requested shape."""
    mode: CaptureMode
    output: Optional[str] = None
    lines: Optional[List[str]] = None


class OutputCapture:
    """
    Decodes raw process output.

    Decoding is strict UTF-8: invalid bytes raise UnicodeDecodeError so the
    caller can report the output as unusable instead of guessing.
    """

    def capture(self, stdout: bytes, mode: CaptureMode = CaptureMode.TEXT) -> CaptureResult:
        """
        Process captured stdout according to mode.

        Args:
            stdout: Raw stdout bytes
            mode: Capture mode (text/lines)

        Returns:
            CaptureResult with processed output

        Raises:
            UnicodeDecodeError: If stdout is not valid UTF-8
        """
        text = stdout.decode('utf-8')

        if mode == CaptureMode.TEXT:
            return self._capture_text(text)
        elif mode == CaptureMode.LINES:
            return self._capture_lines(text)
        else:
            raise ValueError(f"Unknown capture mode: {mode}")

    def _capture_text(self, text: str) -> CaptureResult:
        """Only line terminators are trimmed; other trailing whitespace is kept."""
        return CaptureResult(mode=CaptureMode.TEXT, output=text.rstrip('\r\n'))

    def _capture_lines(self, text: str) -> CaptureResult:
        """
        Normalizes CRLF to LF and drops the empty trailing line.
        """
        text = text.replace('\r\n', '\n')
        lines = text.split('\n')

        if lines and lines[-1] == '':
            lines = lines[:-1]

        return CaptureResult(mode=CaptureMode.LINES, lines=lines)
