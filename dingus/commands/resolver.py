"""
Command tree resolution.
Walks an invocation path down the command tree, merging the variables
declared at each level on the way.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

from ..args import ArgumentResolver, MappingArgumentResolver
from ..exceptions import CommandNotFoundError
from ..model import CommandDefinition, Config, VariableDefinitions


logger = logging.getLogger(__name__)


def merge_variables(parent: Mapping, child: Mapping) -> VariableDefinitions:
    """
    Merge two variable scopes into a new mapping.

    Child definitions shadow parent definitions of the same name; neither
    input is modified. Parent declaration order is kept, with new child
    names appended after it.
    """
    merged = dict(parent)
    merged.update(child)
    return merged


@dataclass(frozen=True)
class ResolvedCommandContext:
    """
    A located command ready to run.

    Attributes:
        command: The command node the path led to
        variables: Every variable in scope, outermost first, shadowing applied
        arguments: Command-line values for the invocation
        path: Canonical command names along the path
    """
    command: CommandDefinition
    variables: VariableDefinitions
    arguments: ArgumentResolver = field(default_factory=MappingArgumentResolver)
    path: Tuple[str, ...] = ()


class CommandTreeResolver:
    """Locates commands by name or alias and collects their variable scope."""

    def __init__(self, config: Config):
        self.config = config

    def locate(self, path: Sequence[str]) -> Tuple[Tuple[str, ...], CommandDefinition, VariableDefinitions]:
        """
        Follow ``path`` from the root.

        Returns:
            (canonical names, command node, merged variables)

        Raises:
            CommandNotFoundError: If a token matches no command at its level
        """
        if not path:
            raise CommandNotFoundError([])

        siblings = self.config.commands
        variables = dict(self.config.variables)
        names: List[str] = []
        command: Optional[CommandDefinition] = None

        for token in path:
            match = self._find(siblings, token)
            if match is None:
                raise CommandNotFoundError(list(path))

            name, command = match
            names.append(name)
            variables = merge_variables(variables, command.variables)
            siblings = command.subcommands

        return tuple(names), command, variables

    def resolve(self, path: Sequence[str], arguments: Optional[ArgumentResolver] = None) -> ResolvedCommandContext:
        """
        Locate a runnable command.

        Raises:
            CommandNotFoundError: If the path is empty, does not match, or
                ends on a command without an action
        """
        names, command, variables = self.locate(path)

        if command.action is None:
            raise CommandNotFoundError(list(path))

        logger.debug(f"Resolved command: {' '.join(names)}")
        return ResolvedCommandContext(
            command=command,
            variables=variables,
            arguments=arguments or MappingArgumentResolver(),
            path=names,
        )

    def _find(self, siblings, token: str) -> Optional[Tuple[str, CommandDefinition]]:
        # Canonical names win over aliases of other siblings
        if token in siblings:
            return token, siblings[token]
        for name, command in siblings.items():
            if command.matches(name, token):
                return name, command
        return None
