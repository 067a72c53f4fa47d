"""Builds the argparse command line from a loaded command tree."""

import argparse
from typing import Dict, List, Mapping, Optional, Tuple

from ..args import ALIAS_ARGS_DEST, variable_dest
from ..commands.resolver import merge_variables
from ..model import (
    AliasAction,
    CommandDefinition,
    Config,
    ExecutionVariable,
    ExtendedLiteralVariable,
    LiteralVariable,
    PromptVariable,
    VariableDefinition,
    flag_owners,
)


COMMAND_DEST_PREFIX = "_command_"


def command_dest(depth: int) -> str:
    return f"{COMMAND_DEST_PREFIX}{depth}"


def command_path(namespace: argparse.Namespace) -> List[str]:
    """Command tokens chosen on the command line, outermost first."""
    path = []
    depth = 0
    while getattr(namespace, command_dest(depth), None):
        path.append(getattr(namespace, command_dest(depth)))
        depth += 1
    return path


def flag_help(definition: VariableDefinition) -> str:
    if definition.description:
        return definition.description
    if isinstance(definition, ExecutionVariable):
        return f"Defaults to the result of executing {definition.execution.command}"
    if isinstance(definition, PromptVariable):
        return "Prompts the user for a value if not specified."
    if isinstance(definition, (LiteralVariable, ExtendedLiteralVariable)):
        return f"(default: {definition.value})"
    return ""


def visible_flags(variables: Mapping[str, VariableDefinition]) -> Dict[str, Tuple[str, VariableDefinition]]:
    """Flag name -> (variable key, definition); later scopes replace earlier flags of the same name."""
    return {flag: (key, variables[key]) for flag, key in flag_owners(dict(variables)).items()}


def _add_variable_flags(parser: argparse.ArgumentParser, variables: Mapping[str, VariableDefinition]):
    for flag, (key, definition) in visible_flags(variables).items():
        parser.add_argument(
            f"--{flag}",
            dest=variable_dest(flag),
            metavar=key.upper(),
            default=argparse.SUPPRESS,
            help=flag_help(definition),
        )


def _add_subcommands(
    parser: argparse.ArgumentParser,
    commands: Mapping[str, CommandDefinition],
    variables: Mapping[str, VariableDefinition],
    depth: int,
    required: bool,
):
    visible = [name for name, command in commands.items() if not command.hidden]
    subparsers = parser.add_subparsers(
        dest=command_dest(depth),
        metavar="{" + ",".join(visible) + "}",
        title="commands",
    )
    subparsers.required = required

    for name, command in commands.items():
        kwargs = {
            'aliases': list(command.aliases),
            'description': command.description,
        }
        # Without help no listing entry is created
        if not command.hidden:
            kwargs['help'] = command.description or ""

        subparser = subparsers.add_parser(name, **kwargs)
        _build_command(subparser, command, merge_variables(variables, command.variables), depth + 1)


def _build_command(
    parser: argparse.ArgumentParser,
    command: CommandDefinition,
    variables: Mapping[str, VariableDefinition],
    depth: int,
):
    _add_variable_flags(parser, variables)

    action = command.action
    if action is not None and any(isinstance(step, AliasAction) for step in action.steps):
        parser.add_argument(
            ALIAS_ARGS_DEST,
            nargs=argparse.REMAINDER,
            help="Arguments passed on to the aliased command",
        )

    if command.subcommands:
        _add_subcommands(parser, command.subcommands, variables, depth, required=action is None)


def build_parser(config: Config, prog: Optional[str] = 'dingus') -> argparse.ArgumentParser:
    """
    Create the argument parser for a command tree.

    Every command becomes a subparser. Variable flags are added at the level
    that declares them and repeated on every descendant, so a flag may be
    given after any command on the path.
    """
    parser = argparse.ArgumentParser(prog=prog, description=config.description)
    _add_variable_flags(parser, config.variables)
    _add_subcommands(parser, config.commands, config.variables, 0, required=True)
    return parser
