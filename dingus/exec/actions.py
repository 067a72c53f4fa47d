"""
Action execution for a located command.

Primary actions stop at the first failure; deferred actions always all run
and their failures are reported together.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence

from ..args import ALIAS_ARGS_DEST, ArgumentResolver, MappingArgumentResolver
from ..exceptions import (
    ActionError,
    ActionErrors,
    ActionExitStatusError,
    ActionLaunchError,
    ConfirmationDeclinedError,
    ProcessLaunchError,
    PromptError,
)
from ..interaction import InteractionProvider
from ..model import (
    Action,
    AliasAction,
    CommandDefinition,
    ConfirmationAction,
    ExecutionAction,
    RawCommand,
    VariableMap,
)
from .process import ProcessRunner


logger = logging.getLogger(__name__)


class ExecutionPolicy(str, Enum):
    """Failure handling across a sequence of actions."""
    STOP_ON_FIRST_FAILURE = "stop"
    AGGREGATE = "aggregate"


class ActionExecutor:
    """
    Runs actions in order against one resolved variable map.

    Holds no state between actions apart from the failures collected under
    the aggregate policy.
    """

    def __init__(
        self,
        process_runner: ProcessRunner,
        interaction: InteractionProvider,
        arguments: Optional[ArgumentResolver] = None,
    ):
        """
        Initialize action executor.

        Args:
            process_runner: Runs execution and alias actions
            interaction: Asks confirmation questions
            arguments: Source of trailing arguments for alias actions
        """
        self.process_runner = process_runner
        self.interaction = interaction
        self.arguments = arguments or MappingArgumentResolver()

    def execute_command(self, command: CommandDefinition, variables: VariableMap) -> None:
        """
        Run a command's primary actions, then its deferred actions.

        Deferred actions run even when a primary action failed. A lone
        primary failure is raised as is; anything involving deferred
        failures is raised as ActionErrors.
        """
        primary_error: Optional[ActionError] = None
        deferred_errors: List[ActionError] = []

        if command.action is not None:
            try:
                self.execute(command.action.steps, variables, ExecutionPolicy.STOP_ON_FIRST_FAILURE)
            except ActionError as e:
                primary_error = e

        if command.defer is not None:
            try:
                self.execute(command.defer.steps, variables, ExecutionPolicy.AGGREGATE, deferred=True)
            except ActionErrors as e:
                deferred_errors = e.errors

        if deferred_errors:
            errors = ([primary_error] if primary_error else []) + deferred_errors
            raise ActionErrors(errors)
        if primary_error:
            raise primary_error

    def execute(
        self,
        actions: Sequence[Action],
        variables: VariableMap,
        policy: ExecutionPolicy = ExecutionPolicy.STOP_ON_FIRST_FAILURE,
        deferred: bool = False,
    ) -> None:
        """
        Execute actions in order under the given policy.

        Args:
            actions: Actions to run
            variables: Resolved variables
            policy: Stop at the first failure, or run all and aggregate
            deferred: Tag failures as coming from deferred actions

        Raises:
            ActionError: First failure under STOP_ON_FIRST_FAILURE
            ActionErrors: All failures under AGGREGATE
        """
        errors: List[ActionError] = []

        for index, action in enumerate(actions):
            error = self.execute_action(index, action, variables, deferred)
            if error is None:
                continue

            if policy == ExecutionPolicy.STOP_ON_FIRST_FAILURE:
                raise error
            errors.append(error)
            logger.debug(f"Continuing after failed action {index}: {error}")

        if errors:
            raise ActionErrors(errors)

    def execute_action(
        self,
        index: int,
        action: Action,
        variables: VariableMap,
        deferred: bool = False,
    ) -> Optional[ActionError]:
        """Run one action; return its failure instead of raising it."""
        logger.debug(f"Running {'deferred ' if deferred else ''}action {index}")

        if isinstance(action, ExecutionAction):
            return self._run_process(index, action.execution, variables, deferred)
        elif isinstance(action, AliasAction):
            return self._run_alias(index, action, variables, deferred)
        elif isinstance(action, ConfirmationAction):
            return self._confirm(index, action, deferred)
        else:
            raise TypeError(f"Unknown action type: {type(action).__name__}")

    def _run_process(self, index, spec, variables, deferred, extra_args=None) -> Optional[ActionError]:
        try:
            result = self.process_runner.run(spec, variables, extra_args=extra_args)
        except ProcessLaunchError as e:
            return ActionLaunchError(index, e, deferred)

        if not result.success:
            return ActionExitStatusError(index, result.exit_code, deferred)
        return None

    def _run_alias(self, index, action: AliasAction, variables, deferred) -> Optional[ActionError]:
        # Trailing arguments are appended after substitution and splitting
        extra_args = self.arguments.get_many(ALIAS_ARGS_DEST) or []
        return self._run_process(index, RawCommand(action.alias), variables, deferred, extra_args)

    def _confirm(self, index, action: ConfirmationAction, deferred) -> Optional[ActionError]:
        try:
            confirmed = self.interaction.confirm(action.message, default=False)
        except PromptError as e:
            logger.debug(f"Confirmation cancelled: {e}")
            confirmed = False

        if not confirmed:
            return ConfirmationDeclinedError(index, action.message, deferred)
        return None
