"""Config discovery, YAML loading and strict validation of the command tree."""

import io
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, TextIO, Tuple

import yaml

from .exceptions import ConfigNotFoundError, ConfigurationError, ConfigValidationError, ValidationError
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
    Platform,
    PromptVariable,
    RawCommand,
    SelectPromptOptions,
    ShellCommand,
    TextPromptOptions,
    VariableDefinition,
    VariableDefinitions,
    flag_name,
)
from .platforms import current_platform


logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("dingus.yaml", "Dingus.yaml", "dingus.yml", "Dingus.yml")

DEFAULT_CONFIG_FILE = """description: My Dingus file

variables:
  name: Godzilla

commands:
  greet:
    action: echo "Hello, $name!"
"""

RESERVED_FLAGS = {"help"}

LOG_LEVELS = ("debug", "info", "warning", "error")

TRUTHY = ("true", "TRUE", "t", "T", "1")


class PreservingLoader(yaml.SafeLoader):
    """YAML loader that keeps 'on', 'off', 'yes', 'no' as strings; 'true'/'false' stay booleans."""
    pass


# Drop the implicit bool resolvers for words starting with these letters, so
# variable values like `yes` or `off` survive as written.
PreservingLoader.yaml_implicit_resolvers = dict(PreservingLoader.yaml_implicit_resolvers)
for _first in "oOyYnN":
    if _first in PreservingLoader.yaml_implicit_resolvers:
        PreservingLoader.yaml_implicit_resolvers[_first] = [
            (tag, regexp) for tag, regexp in PreservingLoader.yaml_implicit_resolvers[_first]
            if tag != 'tag:yaml.org,2002:bool'
        ]


@dataclass
class FoundConfig:
    """A loaded configuration and the file it came from (None for stdin)."""
    config: Config
    source: Optional[Path] = None


def is_truthy(value: Optional[str]) -> bool:
    return value in TRUTHY


def find_config_file(start: Path) -> Path:
    """
    Search ``start`` and then each parent directory for a config file.

    Raises:
        ConfigNotFoundError: If no directory up to the root has one
    """
    directory = start.resolve()
    while True:
        for file_name in CONFIG_FILE_NAMES:
            candidate = directory / file_name
            if candidate.is_file():
                return candidate

        if directory.parent == directory:
            raise ConfigNotFoundError()
        directory = directory.parent


def init_config(directory: Path) -> Path:
    """Write the default config file into ``directory`` and return its path."""
    path = directory / CONFIG_FILE_NAMES[0]
    try:
        path.write_text(DEFAULT_CONFIG_FILE)
    except OSError as e:
        raise ConfigurationError(f"failed to write config file: {e}") from e
    logger.info(f"Created config file: {path}")
    return path


class ConfigLoader:
    """Loads and validates dingus YAML with strict schema enforcement."""

    TOP_LEVEL_FIELDS = {
        'description', 'desc', 'variables', 'vars', 'commands', 'cmds', 'options', 'opts', 'imports',
    }
    COMMAND_FIELDS = {
        'description', 'desc', 'aliases', 'variables', 'vars', 'commands', 'cmds',
        'action', 'actions', 'alias', 'defer', 'hidden', 'platform', 'platforms',
    }
    VARIABLE_FIELDS = {'description', 'desc', 'arg', 'argument', 'value', 'exec', 'execute', 'prompt'}
    PROMPT_FIELDS = {'message', 'multi_line', 'sensitive', 'options', 'opts'}
    IMPORT_FIELDS = {'alias', 'source', 'hidden', 'platform', 'platforms'}
    OPTION_FIELDS = {'print_commands', 'print_variables', 'log_level'}
    WORKDIR_FIELDS = ('working_directory', 'workdir', 'wd')

    def __init__(
        self,
        platform: Optional[Platform] = None,
        environ: Optional[Mapping[str, str]] = None,
        _import_stack: Tuple[Path, ...] = (),
    ):
        """
        Initialize loader.

        Args:
            platform: Platform used to filter commands (default: current)
            environ: Environment consulted for option defaults (default: os.environ)
        """
        self.platform = platform or current_platform()
        self.environ = os.environ if environ is None else environ
        self.errors: List[ValidationError] = []
        self._import_stack = _import_stack

    def load_from_environment(self, cwd: Optional[Path] = None, stdin: Optional[TextIO] = None) -> FoundConfig:
        """
        Load the config the way the CLI does.

        An interactive stdin means the config is a file found by searching
        upward from ``cwd``; otherwise stdin itself holds the config text.
        """
        stdin = stdin or sys.stdin
        if stdin.isatty():
            path = find_config_file(cwd or Path.cwd())
            logger.info(f"Loading config: {path}")
            return FoundConfig(config=self.load_file(path), source=path)

        logger.info("Loading config from stdin")
        try:
            text = stdin.read()
        except OSError as e:
            raise ConfigurationError(f"failed to read config: {e}") from e
        return FoundConfig(config=self.load_text(text, cwd or Path.cwd()), source=None)

    def load_file(self, path: Path) -> Config:
        """Load and validate a config file."""
        try:
            text = Path(path).read_text()
        except OSError as e:
            raise ConfigurationError(f"failed to read config: {e}") from e

        loader = ConfigLoader(self.platform, self.environ, self._import_stack + (Path(path).resolve(),))
        return loader.load_text(text, Path(path).resolve().parent)

    def load_text(self, text: str, base_dir: Path) -> Config:
        """Parse and validate config text; imports resolve relative to ``base_dir``."""
        try:
            document = yaml.load(io.StringIO(text), Loader=PreservingLoader)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"failed to parse config file: {e}") from e

        return self.build(document, base_dir)

    def build(self, document: Any, base_dir: Optional[Path] = None) -> Config:
        """
        Validate a parsed YAML document and build the Config model.

        Raises:
            ConfigValidationError: With every problem found
        """
        self.errors = []
        base_dir = base_dir or Path.cwd()

        if not isinstance(document, dict):
            self._add_error("config must be a YAML mapping")
            self._raise_validation_errors()

        self._check_fields(document, self.TOP_LEVEL_FIELDS, "")

        description = self._optional_str(self._first(document, 'description', 'desc'), "description")
        variables = self._parse_variables(self._first(document, 'variables', 'vars'), "variables")
        options = self._parse_options(self._first(document, 'options', 'opts'))

        raw_commands = self._first(document, 'commands', 'cmds')
        if raw_commands is None:
            self._add_error("'commands' field is required", "commands")
            raw_commands = {}
        commands = self._parse_commands(raw_commands, "commands")

        for name, command in self._parse_imports(document.get('imports'), base_dir).items():
            if name in commands:
                self._add_error(f"import alias '{name}' clashes with a command", "imports")
            commands[name] = command

        if self.errors:
            self._raise_validation_errors()

        return Config(commands=commands, description=description, variables=variables, options=options)

    def _parse_options(self, raw: Any) -> Options:
        defaults = Options(
            print_commands=is_truthy(self.environ.get("DINGUS_PRINT_COMMANDS")),
            print_variables=is_truthy(self.environ.get("DINGUS_PRINT_VARIABLES")),
            log_level=self.environ.get("DINGUS_LOG_LEVEL", "warning").lower(),
        )
        if raw is None:
            return defaults
        if not isinstance(raw, dict):
            self._add_error("'options' must be a mapping", "options")
            return defaults

        self._check_fields(raw, self.OPTION_FIELDS, "options")
        print_commands = self._bool(raw.get('print_commands', defaults.print_commands), "options.print_commands")
        print_variables = self._bool(raw.get('print_variables', defaults.print_variables), "options.print_variables")
        log_level = str(raw.get('log_level', defaults.log_level)).lower()
        if log_level not in LOG_LEVELS:
            self._add_error(f"log_level must be one of {list(LOG_LEVELS)}", "options.log_level")
            log_level = defaults.log_level

        return Options(print_commands=print_commands, print_variables=print_variables, log_level=log_level)

    def _parse_commands(self, raw: Any, path: str) -> Dict[str, CommandDefinition]:
        if not isinstance(raw, dict):
            self._add_error("commands must be a mapping of name to command", path)
            return {}

        commands: Dict[str, CommandDefinition] = {}
        seen_names: Dict[str, str] = {}

        for name, raw_command in raw.items():
            name = str(name)
            command_path = f"{path}.{name}"
            command = self._parse_command(raw_command, command_path)
            if command is None:
                continue

            for token in (name,) + command.aliases:
                if token in seen_names:
                    self._add_error(f"name '{token}' is already used by command '{seen_names[token]}'", command_path)
                else:
                    seen_names[token] = name

            if not self._available(command.platforms):
                logger.debug(f"Skipping command '{name}': not available on this platform")
                continue
            commands[name] = command

        return commands

    def _parse_command(self, raw: Any, path: str) -> Optional[CommandDefinition]:
        if not isinstance(raw, dict):
            self._add_error("command must be a mapping", path)
            return None

        self._check_fields(raw, self.COMMAND_FIELDS, path)

        action_fields = [f for f in ('action', 'actions', 'alias') if f in raw]
        if len(action_fields) > 1:
            self._add_error(f"mutually exclusive fields {action_fields}", path)

        action: Optional[ActionSpec] = None
        if 'action' in raw:
            parsed = self._parse_action(raw['action'], f"{path}.action")
            action = ActionSpec.single(parsed) if parsed else None
        elif 'actions' in raw:
            action = self._parse_action_list(raw['actions'], f"{path}.actions")
        elif 'alias' in raw:
            alias = self._command_text(raw['alias'], f"{path}.alias")
            action = ActionSpec.single(AliasAction(alias)) if alias else None

        defer: Optional[ActionSpec] = None
        if 'defer' in raw:
            if isinstance(raw['defer'], list):
                defer = self._parse_action_list(raw['defer'], f"{path}.defer")
            else:
                parsed = self._parse_action(raw['defer'], f"{path}.defer")
                defer = ActionSpec.single(parsed) if parsed else None

        raw_subcommands = self._first(raw, 'commands', 'cmds')
        subcommands = self._parse_commands(raw_subcommands, f"{path}.commands") if raw_subcommands is not None else {}

        if not action_fields and not raw_subcommands:
            self._add_error("command has no action and no subcommands", path)

        return CommandDefinition(
            description=self._optional_str(self._first(raw, 'description', 'desc'), f"{path}.description"),
            aliases=self._parse_aliases(raw.get('aliases'), f"{path}.aliases"),
            variables=self._parse_variables(self._first(raw, 'variables', 'vars'), f"{path}.variables"),
            subcommands=subcommands,
            action=action,
            defer=defer,
            hidden=self._bool(raw.get('hidden', False), f"{path}.hidden"),
            platforms=self._parse_platforms(raw, path),
        )

    def _parse_aliases(self, raw: Any, path: str) -> Tuple[str, ...]:
        if raw is None:
            return ()
        if isinstance(raw, str):
            return (raw,)
        if not isinstance(raw, list) or not all(isinstance(a, str) and a for a in raw):
            self._add_error("aliases must be a list of non-empty strings", path)
            return ()
        return tuple(raw)

    def _parse_platforms(self, raw: Dict[str, Any], path: str) -> Tuple[Platform, ...]:
        if 'platform' in raw and 'platforms' in raw:
            self._add_error("mutually exclusive fields ['platform', 'platforms']", path)

        values = raw.get('platforms', [])
        if 'platform' in raw:
            values = [raw['platform']]
        if not isinstance(values, list):
            self._add_error("platforms must be a list", f"{path}.platforms")
            return ()

        by_name = {p.value.lower(): p for p in Platform}
        platforms = []
        for value in values:
            platform = by_name.get(str(value).lower())
            if platform is None:
                self._add_error(f"unknown platform '{value}', expected one of {[p.value for p in Platform]}", path)
            else:
                platforms.append(platform)
        return tuple(platforms)

    def _parse_action_list(self, raw: Any, path: str) -> Optional[ActionSpec]:
        if not isinstance(raw, list) or not raw:
            self._add_error("must be a non-empty list of actions", path)
            return None

        actions = []
        for i, item in enumerate(raw):
            action = self._parse_action(item, f"{path}[{i}]")
            if action is not None:
                actions.append(action)
        return ActionSpec.multi(actions)

    def _parse_action(self, raw: Any, path: str) -> Optional[Action]:
        if isinstance(raw, dict) and ('confirm' in raw or 'confirmation' in raw):
            self._check_fields(raw, {'confirm', 'confirmation'}, path)
            message = self._command_text(self._first(raw, 'confirm', 'confirmation'), path)
            return ConfirmationAction(message) if message is not None else None

        spec = self._parse_command_spec(raw, path)
        return ExecutionAction(spec) if spec is not None else None

    def _parse_command_spec(self, raw: Any, path: str) -> Optional[CommandSpec]:
        """Bare string, {command|cmd: ...} or {bash|sh: ...}, each with an optional working directory."""
        if isinstance(raw, (str, int, float)) and not isinstance(raw, bool):
            return RawCommand(str(raw))

        if not isinstance(raw, dict):
            self._add_error("expected a command string or mapping", path)
            return None

        shell_fields = [f for f in ('bash', 'sh') if f in raw]
        raw_fields = [f for f in ('command', 'cmd') if f in raw]
        self._check_fields(raw, set(self.WORKDIR_FIELDS) | {'bash', 'sh', 'command', 'cmd'}, path)

        if len(shell_fields) + len(raw_fields) != 1:
            self._add_error("exactly one of 'bash', 'sh', 'command' or 'cmd' is required", path)
            return None

        working_directory = self._optional_str(self._first(raw, *self.WORKDIR_FIELDS), f"{path}.working_directory")

        if shell_fields:
            text = self._command_text(raw[shell_fields[0]], f"{path}.{shell_fields[0]}")
            return ShellCommand(text, working_directory) if text is not None else None

        text = self._command_text(raw[raw_fields[0]], f"{path}.{raw_fields[0]}")
        return RawCommand(text, working_directory) if text is not None else None

    def _parse_variables(self, raw: Any, path: str) -> VariableDefinitions:
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            self._add_error("variables must be a mapping of name to definition", path)
            return {}

        variables: VariableDefinitions = {}
        flags: Dict[str, str] = {}
        for key, raw_variable in raw.items():
            key = str(key)
            variable_path = f"{path}.{key}"
            definition = self._parse_variable(raw_variable, variable_path)
            if definition is None:
                continue

            flag = flag_name(key, definition)
            if not flag or flag.startswith('-') or flag in RESERVED_FLAGS:
                self._add_error(f"invalid flag name '{flag}'", variable_path)
            elif flag in flags:
                self._add_error(f"flag '--{flag}' is already used by variable '{flags[flag]}'", variable_path)
            else:
                flags[flag] = key

            variables[key] = definition

        return variables

    def _parse_variable(self, raw: Any, path: str) -> Optional[VariableDefinition]:
        if raw is None:
            self._add_error("variable has no value", path)
            return None
        if not isinstance(raw, (dict, list)):
            return LiteralVariable(self._scalar(raw))
        if not isinstance(raw, dict):
            self._add_error("variable must be a scalar or mapping", path)
            return None

        self._check_fields(raw, self.VARIABLE_FIELDS, path)

        sources = [f for f in ('value', 'exec', 'execute', 'prompt') if f in raw]
        if len(sources) != 1:
            self._add_error("exactly one of 'value', 'exec' or 'prompt' is required", path)
            return None

        description = self._optional_str(self._first(raw, 'description', 'desc'), f"{path}.description")
        arg = self._optional_str(self._first(raw, 'arg', 'argument'), f"{path}.arg")
        source = sources[0]

        if source == 'value':
            if raw['value'] is None or isinstance(raw['value'], (dict, list)):
                self._add_error("value must be a scalar", f"{path}.value")
                return None
            return ExtendedLiteralVariable(self._scalar(raw['value']), description, arg)

        if source in ('exec', 'execute'):
            spec = self._parse_command_spec(raw[source], f"{path}.exec")
            return ExecutionVariable(spec, description, arg) if spec is not None else None

        prompt = raw['prompt']
        if not isinstance(prompt, dict):
            self._add_error("prompt must be a mapping", f"{path}.prompt")
            return None
        return self._parse_prompt(prompt, f"{path}.prompt", description, arg)

    def _parse_prompt(self, raw: Dict[str, Any], path: str, description, arg) -> Optional[PromptVariable]:
        self._check_fields(raw, self.PROMPT_FIELDS, path)

        message = raw.get('message')
        if not isinstance(message, str):
            self._add_error("prompt requires a 'message' string", path)
            return None

        raw_options = self._first(raw, 'options', 'opts')
        if raw_options is None:
            options = TextPromptOptions(
                multi_line=self._bool(raw.get('multi_line', False), f"{path}.multi_line"),
                sensitive=self._bool(raw.get('sensitive', False), f"{path}.sensitive"),
            )
            return PromptVariable(message, options, description, arg)

        if 'multi_line' in raw or 'sensitive' in raw:
            self._add_error("select prompts do not take 'multi_line' or 'sensitive'", path)

        if isinstance(raw_options, list):
            choices = tuple(self._scalar(option) for option in raw_options)
            return PromptVariable(message, SelectPromptOptions(choices), description, arg)

        if isinstance(raw_options, dict) and len(raw_options) == 1 and self._first(raw_options, 'exec', 'execute') is not None:
            spec = self._parse_command_spec(self._first(raw_options, 'exec', 'execute'), f"{path}.options.exec")
            if spec is None:
                return None
            return PromptVariable(message, SelectPromptOptions(spec), description, arg)

        self._add_error("options must be a list or {exec: <command>}", f"{path}.options")
        return None

    def _parse_imports(self, raw: Any, base_dir: Path) -> Dict[str, CommandDefinition]:
        """Each import mounts another config file as a command named by its alias."""
        if raw is None:
            return {}
        if not isinstance(raw, list):
            self._add_error("'imports' must be a list", "imports")
            return {}

        imported: Dict[str, CommandDefinition] = {}
        for i, item in enumerate(raw):
            path = f"imports[{i}]"
            if not isinstance(item, dict):
                self._add_error("import must be a mapping", path)
                continue

            self._check_fields(item, self.IMPORT_FIELDS, path)
            alias = item.get('alias')
            source = item.get('source')
            if not isinstance(alias, str) or not isinstance(source, str):
                self._add_error("import requires 'alias' and 'source' strings", path)
                continue

            platforms = self._parse_platforms(item, path)
            if not self._available(platforms):
                continue

            source_path = (base_dir / source).resolve()
            if source_path in self._import_stack:
                self._add_error(f"failed to import {alias}: import cycle through {source_path}", path)
                continue

            try:
                child = self.load_file(source_path)
            except ConfigurationError as e:
                self._add_error(f"failed to import {alias}: {e}", path)
                continue

            imported[alias] = CommandDefinition(
                description=child.description,
                variables=child.variables,
                subcommands=child.commands,
                hidden=self._bool(item.get('hidden', False), f"{path}.hidden"),
                platforms=platforms,
            )

        return imported

    def _available(self, platforms: Tuple[Platform, ...]) -> bool:
        """Unrestricted entries exist everywhere; restricted ones need a recognized platform."""
        return not platforms or (self.platform is not None and self.platform in platforms)

    def _first(self, raw: Dict[str, Any], *names: str) -> Any:
        """Value of the first of ``names`` present (field aliases like desc/description)."""
        present = [name for name in names if name in raw]
        if len(present) > 1:
            self._add_error(f"fields {present} are aliases, use only one")
        return raw[present[0]] if present else None

    def _check_fields(self, raw: Dict[str, Any], known: Set[str], path: str):
        for key in raw.keys():
            if key not in known:
                self._add_error(f"unknown field '{key}'", path)

    def _scalar(self, value: Any) -> str:
        if isinstance(value, bool):
            return 'true' if value else 'false'
        return str(value)

    def _command_text(self, value: Any, path: str) -> Optional[str]:
        if value is None or isinstance(value, (dict, list)):
            self._add_error("expected text", path)
            return None
        return self._scalar(value)

    def _optional_str(self, value: Any, path: str) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, (dict, list)):
            self._add_error("expected a string", path)
            return None
        return self._scalar(value)

    def _bool(self, value: Any, path: str) -> bool:
        if not isinstance(value, bool):
            self._add_error("expected true or false", path)
            return False
        return value

    def _add_error(self, message: str, path: str = ""):
        """Add validation error."""
        self.errors.append(ValidationError(message, path))

    def _raise_validation_errors(self):
        """Raise ConfigValidationError with accumulated errors."""
        raise ConfigValidationError(self.errors)
