"""Fixtures and helpers shared by dingus tests."""

import shutil
from typing import Dict, List

import pytest
from unittest.mock import Mock

from dingus.exec.process import ProcessResult, ProcessRunner
from dingus.interaction import InteractionProvider


def has_bash() -> bool:
    return shutil.which("bash") is not None


def skip_if_no_bash() -> None:
    """Skip test if bash is not available."""
    if not has_bash():
        pytest.skip("bash not available")


class ScriptedInteraction(InteractionProvider):
    """Interaction provider answering from prepared queues and recording every question."""

    def __init__(self, texts=None, selections=None, confirmations=None):
        self.texts: List = list(texts or [])
        self.selections: List = list(selections or [])
        self.confirmations: List = list(confirmations or [])
        self.asked: List[Dict] = []

    def _next(self, queue):
        answer = queue.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def text(self, message, sensitive=False, multi_line=False):
        self.asked.append({'kind': 'text', 'message': message, 'sensitive': sensitive, 'multi_line': multi_line})
        return self._next(self.texts)

    def select(self, message, options):
        self.asked.append({'kind': 'select', 'message': message, 'options': list(options)})
        answer = self._next(self.selections)
        # An int picks by position
        return options[answer] if isinstance(answer, int) else answer

    def confirm(self, message, default=False):
        self.asked.append({'kind': 'confirm', 'message': message, 'default': default})
        return self._next(self.confirmations)


@pytest.fixture
def interaction():
    return ScriptedInteraction()


@pytest.fixture
def runner():
    """ProcessRunner mock that succeeds with empty output unless told otherwise."""
    mock = Mock(spec=ProcessRunner)
    mock.run.return_value = ProcessResult(exit_code=0)
    return mock


@pytest.fixture
def tty_stdin():
    """A stdin stand-in that reports itself as a terminal."""
    stdin = Mock()
    stdin.isatty.return_value = True
    return stdin
