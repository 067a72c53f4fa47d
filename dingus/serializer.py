"""Converts the config model back into a YAML document that loads to the same model."""

from typing import Any, Dict

import yaml

from .model import (
    Action,
    ActionSpec,
    AliasAction,
    CommandDefinition,
    CommandSpec,
    Config,
    ConfirmationAction,
    ExecutionAction,
    ExecutionVariable,
    ExtendedLiteralVariable,
    LiteralVariable,
    Options,
    PromptVariable,
    RawCommand,
    SelectPromptOptions,
    ShellCommand,
    TextPromptOptions,
    VariableDefinition,
)


def dump_command_spec(spec: CommandSpec) -> Any:
    if isinstance(spec, ShellCommand):
        data: Dict[str, Any] = {'bash': spec.command}
    elif isinstance(spec, RawCommand):
        if spec.working_directory is None:
            return spec.command
        data = {'command': spec.command}
    else:
        raise TypeError(f"Invalid command spec type: {type(spec).__name__}")

    if spec.working_directory is not None:
        data['working_directory'] = spec.working_directory
    return data


def dump_variable(definition: VariableDefinition) -> Any:
    if isinstance(definition, LiteralVariable):
        return definition.value

    if isinstance(definition, ExtendedLiteralVariable):
        data: Dict[str, Any] = {'value': definition.value}
    elif isinstance(definition, ExecutionVariable):
        data = {'exec': dump_command_spec(definition.execution)}
    elif isinstance(definition, PromptVariable):
        data = {'prompt': _dump_prompt(definition)}
    else:
        raise TypeError(f"Unknown variable definition: {type(definition).__name__}")

    if definition.description is not None:
        data['description'] = definition.description
    if definition.arg is not None:
        data['arg'] = definition.arg
    return data


def _dump_prompt(definition: PromptVariable) -> Dict[str, Any]:
    prompt: Dict[str, Any] = {'message': definition.message}
    options = definition.options
    if isinstance(options, TextPromptOptions):
        if options.multi_line:
            prompt['multi_line'] = True
        if options.sensitive:
            prompt['sensitive'] = True
    elif isinstance(options, SelectPromptOptions):
        if isinstance(options.options, tuple):
            prompt['options'] = list(options.options)
        else:
            prompt['options'] = {'exec': dump_command_spec(options.options)}
    return prompt


def dump_action(action: Action) -> Any:
    if isinstance(action, ExecutionAction):
        return dump_command_spec(action.execution)
    elif isinstance(action, ConfirmationAction):
        return {'confirm': action.message}
    else:
        raise TypeError(f"Action cannot be serialized on its own: {type(action).__name__}")


def _dump_action_spec(spec: ActionSpec) -> Any:
    if spec.multi_step:
        return [dump_action(action) for action in spec.steps]
    return dump_action(spec.steps[0])


def dump_command(command: CommandDefinition) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if command.description is not None:
        data['description'] = command.description
    if command.aliases:
        data['aliases'] = list(command.aliases)
    if command.variables:
        data['variables'] = {key: dump_variable(v) for key, v in command.variables.items()}
    if command.hidden:
        data['hidden'] = True
    if command.platforms:
        data['platforms'] = [platform.value for platform in command.platforms]

    action = command.action
    if action is not None:
        if len(action.steps) == 1 and isinstance(action.steps[0], AliasAction):
            data['alias'] = action.steps[0].alias
        elif action.multi_step:
            data['actions'] = _dump_action_spec(action)
        else:
            data['action'] = _dump_action_spec(action)

    if command.defer is not None:
        data['defer'] = _dump_action_spec(command.defer)
    if command.subcommands:
        data['commands'] = {name: dump_command(sub) for name, sub in command.subcommands.items()}
    return data


def dump_config(config: Config) -> Dict[str, Any]:
    """Config model as a plain dict in config-file shape."""
    data: Dict[str, Any] = {}
    if config.description is not None:
        data['description'] = config.description
    if config.options != Options():
        data['options'] = {
            'print_commands': config.options.print_commands,
            'print_variables': config.options.print_variables,
            'log_level': config.options.log_level,
        }
    if config.variables:
        data['variables'] = {key: dump_variable(v) for key, v in config.variables.items()}
    data['commands'] = {name: dump_command(command) for name, command in config.commands.items()}
    return data


def dumps(config: Config) -> str:
    return yaml.safe_dump(dump_config(config), sort_keys=False, default_flow_style=False)
