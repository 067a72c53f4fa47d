"""
Variable resolution.
Turns variable definitions (literal, command output, prompt) into string
values, with command-line flags taking precedence over every source.
"""

import logging
from typing import List, Mapping, Optional

from rich.console import Console
from rich.text import Text

from ..args import ArgumentResolver
from ..exceptions import (
    DingusError,
    ProcessLaunchError,
    VariableExecutionError,
    VariableExitStatusError,
    VariableOutputError,
    VariablePromptError,
    VariableResolutionError,
)
from ..exec.output_capture import CaptureMode, OutputCapture
from ..exec.process import ProcessRunner
from ..interaction import InteractionProvider
from ..model import (
    ExecutionVariable,
    ExtendedLiteralVariable,
    LiteralVariable,
    PromptVariable,
    SelectPromptOptions,
    TextPromptOptions,
    VariableDefinition,
    VariableMap,
    flag_name,
    flag_owners,
)
from ..security.masking import SensitiveValueMasker


logger = logging.getLogger(__name__)

HIDDEN_VALUE = "********"


class VariableResolver:
    """
    Resolves a mapping of variable definitions into a VariableMap.

    Resolution is all-or-nothing: the first failing variable aborts the call
    and no partial map is returned. Nothing is cached between calls.
    """

    def __init__(
        self,
        process_runner: ProcessRunner,
        interaction: InteractionProvider,
        arguments: ArgumentResolver,
        masker: Optional[SensitiveValueMasker] = None,
        print_variables: bool = False,
        console: Optional[Console] = None,
    ):
        """
        Initialize variable resolver.

        Args:
            process_runner: Runs execution variables and option commands
            interaction: Presents text and select prompts
            arguments: Values supplied as command-line flags
            masker: Receives values entered at sensitive prompts
            print_variables: Print every resolved variable to the console
            console: Console used when printing variables
        """
        self.process_runner = process_runner
        self.interaction = interaction
        self.arguments = arguments
        self.masker = masker or SensitiveValueMasker()
        self.print_variables = print_variables
        self.console = console or Console()
        self.output_capture = OutputCapture()

    def resolve(self, definitions: Mapping[str, VariableDefinition]) -> VariableMap:
        """
        Resolve every definition, in declaration order.

        Args:
            definitions: Variable name -> definition

        Returns:
            Variable name -> value, one entry per definition

        Raises:
            VariableResolutionError: If any single variable fails
        """
        resolved: VariableMap = {}
        sensitive: List[str] = []
        owners = flag_owners(dict(definitions))

        for key, definition in definitions.items():
            owns_flag = owners.get(flag_name(key, definition)) == key
            resolved[key] = self.resolve_one(key, definition, owns_flag)
            if isinstance(definition, PromptVariable) and definition.sensitive:
                sensitive.append(key)
                self.masker.register(resolved[key])

        if self.print_variables:
            self._print_variables(resolved, sensitive)

        return resolved

    def resolve_one(self, key: str, definition: VariableDefinition, owns_flag: bool = True) -> str:
        """
        Resolve a single variable; a supplied flag always wins.

        ``owns_flag`` is False when an inner-scope variable has claimed this
        variable's flag, in which case the flag value is not applied here.
        """
        flag = flag_name(key, definition)
        supplied = self.arguments.get(flag) if owns_flag else None
        if supplied is not None:
            logger.debug(f"Variable '{key}' supplied by --{flag}")
            return supplied

        if isinstance(definition, (LiteralVariable, ExtendedLiteralVariable)):
            return definition.value
        elif isinstance(definition, ExecutionVariable):
            return self._resolve_execution(key, definition)
        elif isinstance(definition, PromptVariable):
            return self._resolve_prompt(key, definition)
        else:
            raise TypeError(f"Unknown variable definition for '{key}': {type(definition).__name__}")

    def _resolve_execution(self, key: str, definition: ExecutionVariable) -> str:
        logger.debug(f"Resolving variable '{key}' from command output")
        try:
            result = self.process_runner.run(definition.execution, {}, capture=True)
        except ProcessLaunchError as e:
            raise VariableExecutionError(key, e) from e

        # Output of a failed command is not trusted
        if not result.success:
            raise VariableExitStatusError(key, result.exit_code)

        try:
            return self.output_capture.capture(result.stdout, CaptureMode.TEXT).output
        except UnicodeDecodeError as e:
            raise VariableOutputError(key, e) from e

    def _resolve_prompt(self, key: str, definition: PromptVariable) -> str:
        options = definition.options
        try:
            if isinstance(options, TextPromptOptions):
                return self.interaction.text(
                    definition.message,
                    sensitive=options.sensitive,
                    multi_line=options.multi_line,
                )
            elif isinstance(options, SelectPromptOptions):
                choices = self._select_options(key, options)
                return self.interaction.select(definition.message, choices)
            else:
                raise TypeError(f"Unknown prompt options for '{key}': {type(options).__name__}")
        except VariableResolutionError:
            raise
        except DingusError as e:
            raise VariablePromptError(key, e) from e

    def _select_options(self, key: str, options: SelectPromptOptions) -> List[str]:
        if isinstance(options.options, tuple):
            return list(options.options)

        try:
            result = self.process_runner.run(options.options, {}, capture=True)
        except ProcessLaunchError as e:
            raise VariableExecutionError(key, e) from e

        if not result.success:
            raise VariableExitStatusError(key, result.exit_code)

        try:
            return self.output_capture.capture(result.stdout, CaptureMode.LINES).lines
        except UnicodeDecodeError as e:
            raise VariableOutputError(key, e) from e

    def _print_variables(self, variables: VariableMap, sensitive: List[str]):
        for name, value in variables.items():
            shown = HIDDEN_VALUE if name in sensitive else value
            self.console.print(Text(f"{name}="), Text(shown, style="green"), sep="")
