"""
Process runner for command specifications.
Runs raw commands as argv (no shell) and shell commands through bash.
"""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from rich.console import Console
from rich.text import Text

from ..exceptions import ProcessLaunchError
from ..model import CommandSpec, RawCommand, ShellCommand
from ..variables.substitution import TemplateSubstitutor


logger = logging.getLogger(__name__)

SHELL_PROGRAM = "bash"


@dataclass
class ProcessResult:
    """Exit status and, when captured, the output of one process."""
    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ProcessRunner:
    """
    Executes command specifications one at a time.

    The resolved variables are merged into a copy of the current environment
    for every child. Raw commands are split into argv and then get $name
    substitution in each argument, so a value is always a single argument.
    """

    def __init__(self, print_commands: bool = False, console: Optional[Console] = None):
        """
        Initialize process runner.

        Args:
            print_commands: Echo each command line before running it
            console: Console used for the echoed command lines
        """
        self.print_commands = print_commands
        self.console = console or Console()
        self.substitutor = TemplateSubstitutor()

    def build_argv(
        self,
        spec: CommandSpec,
        variables: Mapping[str, str],
        extra_args: Optional[List[str]] = None
    ) -> List[str]:
        """Turn a command specification into the argv that will be executed."""
        if isinstance(spec, ShellCommand):
            argv = [SHELL_PROGRAM, "-c", spec.command]
            if extra_args:
                # Passed as positional parameters $1.. after $0
                argv += [SHELL_PROGRAM] + list(extra_args)
            return argv
        elif isinstance(spec, RawCommand):
            # Split before substituting so quotes inside values stay literal
            argv = self.substitutor.substitute(shlex.split(spec.command), variables)
            if extra_args:
                argv += list(extra_args)
            return argv
        else:
            raise TypeError(f"Invalid command spec type: {type(spec).__name__}")

    def build_env(self, variables: Mapping[str, str]) -> Dict[str, str]:
        """Inherited environment overlaid with the resolved variables."""
        env = os.environ.copy()
        env.update(variables)
        return env

    def run(
        self,
        spec: CommandSpec,
        variables: Mapping[str, str],
        capture: bool = False,
        extra_args: Optional[List[str]] = None
    ) -> ProcessResult:
        """
        Run a command and wait for it to finish.

        Args:
            spec: Raw or shell command specification
            variables: Resolved variables (environment overlay and substitution)
            capture: Capture stdout/stderr instead of inheriting the terminal
            extra_args: Arguments appended verbatim after the command's own

        Returns:
            ProcessResult with exit code and captured output

        Raises:
            ProcessLaunchError: If the process cannot be started
        """
        try:
            argv = self.build_argv(spec, variables, extra_args)
        except ValueError as e:
            # shlex rejects unbalanced quotes
            raise ProcessLaunchError(spec.command, OSError(str(e))) from e

        if not argv:
            raise ProcessLaunchError(spec.command, OSError("empty command"))

        command_text = shlex.join(argv)
        self._log(command_text)

        try:
            result = subprocess.run(
                argv,
                cwd=spec.working_directory,
                env=self.build_env(variables),
                capture_output=capture,
            )
        except OSError as e:
            logger.debug(f"Failed to launch {command_text}: {e}")
            raise ProcessLaunchError(command_text, e) from e

        logger.debug(f"Command exited with code {result.returncode}: {command_text}")

        return ProcessResult(
            exit_code=result.returncode,
            stdout=result.stdout or b"",
            stderr=result.stderr or b"",
        )

    def _log(self, command_text: str):
        logger.debug(f"Running: {command_text}")
        if self.print_commands:
            self.console.print(Text("Executing: "), Text(command_text, style="green"), sep="")
