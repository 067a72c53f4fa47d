"""
Data model for the dingus command tree.

Variable, action and command-spec kinds are closed sets of dataclasses; call
sites dispatch on them with isinstance checks.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


class Platform(str, Enum):
    """Operating systems a command can be restricted to."""
    LINUX = "Linux"
    MACOS = "MacOS"
    WINDOWS = "Windows"


@dataclass(frozen=True)
class RawCommand:
    """A command line split into argv and run without a shell."""
    command: str
    working_directory: Optional[str] = None


@dataclass(frozen=True)
class ShellCommand:
    """A command line handed to ``bash -c``."""
    command: str
    working_directory: Optional[str] = None


CommandSpec = Union[RawCommand, ShellCommand]


@dataclass(frozen=True)
class LiteralVariable:
    """Shorthand literal: a bare scalar in the config."""
    value: str

    @property
    def description(self) -> Optional[str]:
        return None

    @property
    def arg(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class ExtendedLiteralVariable:
    """Literal with a description and/or flag override."""
    value: str
    description: Optional[str] = None
    arg: Optional[str] = None


@dataclass(frozen=True)
class ExecutionVariable:
    """Value taken from the stdout of a command."""
    execution: CommandSpec
    description: Optional[str] = None
    arg: Optional[str] = None


@dataclass(frozen=True)
class TextPromptOptions:
    multi_line: bool = False
    sensitive: bool = False


@dataclass(frozen=True)
class SelectPromptOptions:
    """Options are either a literal list or the lines printed by a command."""
    options: Union[Tuple[str, ...], RawCommand, ShellCommand]


@dataclass(frozen=True)
class PromptVariable:
    """Value entered or selected interactively."""
    message: str
    options: Union[TextPromptOptions, SelectPromptOptions] = field(default_factory=TextPromptOptions)
    description: Optional[str] = None
    arg: Optional[str] = None

    @property
    def sensitive(self) -> bool:
        return isinstance(self.options, TextPromptOptions) and self.options.sensitive


VariableDefinition = Union[LiteralVariable, ExtendedLiteralVariable, ExecutionVariable, PromptVariable]

VariableDefinitions = Dict[str, VariableDefinition]

# Resolved name -> value mapping, built once per invocation.
VariableMap = Dict[str, str]


def flag_name(key: str, definition: VariableDefinition) -> str:
    """Command-line flag used to supply ``key`` (without the leading dashes)."""
    return definition.arg or key


def flag_owners(definitions: Dict[str, VariableDefinition]) -> Dict[str, str]:
    """
    Flag name -> key of the variable that owns it.

    Definitions are in scope order, outermost first, so a later variable
    claiming a flag takes it from an earlier one.
    """
    owners: Dict[str, str] = {}
    for key, definition in definitions.items():
        owners[flag_name(key, definition)] = key
    return owners


@dataclass(frozen=True)
class ExecutionAction:
    execution: CommandSpec


@dataclass(frozen=True)
class ConfirmationAction:
    message: str


@dataclass(frozen=True)
class AliasAction:
    """Runs ``alias`` with the trailing command-line arguments appended."""
    alias: str


Action = Union[ExecutionAction, ConfirmationAction, AliasAction]


@dataclass(frozen=True)
class ActionSpec:
    """
    One or more actions, normalized to a sequence.

    Attributes:
        steps: Actions in execution order
        multi_step: Whether the config used the list form
    """
    steps: Tuple[Action, ...]
    multi_step: bool = False

    @classmethod
    def single(cls, action: Action) -> 'ActionSpec':
        return cls(steps=(action,), multi_step=False)

    @classmethod
    def multi(cls, actions: List[Action]) -> 'ActionSpec':
        return cls(steps=tuple(actions), multi_step=True)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)


@dataclass(frozen=True)
class CommandDefinition:
    """
    A node in the command tree.

    Attributes:
        description: Help text
        aliases: Alternative names accepted on the command line
        variables: Variables declared at this level, in declaration order
        subcommands: Child commands keyed by canonical name
        action: Primary actions, run stop-on-first-failure
        defer: Deferred actions, always run afterwards and aggregated
        hidden: Omit from help listings
        platforms: Platforms the command exists on (empty means all)
    """
    description: Optional[str] = None
    aliases: Tuple[str, ...] = ()
    variables: VariableDefinitions = field(default_factory=dict)
    subcommands: Dict[str, 'CommandDefinition'] = field(default_factory=dict)
    action: Optional[ActionSpec] = None
    defer: Optional[ActionSpec] = None
    hidden: bool = False
    platforms: Tuple[Platform, ...] = ()

    def matches(self, name: str, token: str) -> bool:
        """Whether ``token`` selects this command registered under ``name``."""
        return token == name or token in self.aliases


@dataclass(frozen=True)
class Options:
    print_commands: bool = False
    print_variables: bool = False
    log_level: str = "warning"


@dataclass(frozen=True)
class Config:
    """Root of a loaded configuration document."""
    commands: Dict[str, CommandDefinition]
    description: Optional[str] = None
    variables: VariableDefinitions = field(default_factory=dict)
    options: Options = field(default_factory=Options)
