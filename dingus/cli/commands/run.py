"""Run command implementation: load config, locate the command, execute it."""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from rich.console import Console

from dingus.args import NamespaceArgumentResolver
from dingus.commands import CommandTreeResolver
from dingus.exceptions import ActionErrors, ConfigNotFoundError, ConfigValidationError, DingusError
from dingus.exec import ActionExecutor, ProcessRunner
from dingus.interaction import InteractionProvider, TerminalInteraction
from dingus.loader import ConfigLoader
from dingus.security import SensitiveValueMasker, install_masking_filter, remove_masking_filter
from dingus.variables.resolver import VariableResolver

from ..parser import build_parser, command_path
from .init import offer_init


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(levelname)s: %(message)s'


def log_level_value(name: str) -> int:
    return getattr(logging, name.upper(), logging.WARNING)


def configure_logging(level_name: str):
    """Configure root logging to stderr; later calls only adjust the level."""
    logging.basicConfig(level=log_level_value(level_name), format=LOG_FORMAT)
    logging.getLogger().setLevel(log_level_value(level_name))


def report_error(error: DingusError):
    """Log a failure, one line per aggregated entry."""
    if isinstance(error, ActionErrors):
        for entry in error.errors:
            logger.error(str(entry))
    elif isinstance(error, ConfigValidationError):
        for entry in error.errors:
            logger.error(f"Validation error: {entry}")
    else:
        logger.error(str(error))


def run_command(
    args: Optional[List[str]] = None,
    stdin: Optional[TextIO] = None,
    cwd: Optional[Path] = None,
    interaction: Optional[InteractionProvider] = None,
    console: Optional[Console] = None,
) -> int:
    """
    Run a single dingus invocation.

    Args:
        args: Command line without the program name (default: sys.argv[1:])
        stdin: Stream consulted for piped config text (default: sys.stdin)
        cwd: Directory the config search starts from (default: current)
        interaction: Prompt provider (default: terminal prompts)
        console: Console for printed commands and variables

    Returns:
        Process exit code
    """
    configure_logging(os.environ.get("DINGUS_LOG_LEVEL", "warning"))

    stdin = stdin or sys.stdin
    cwd = cwd or Path.cwd()
    console = console or Console()
    interaction = interaction or TerminalInteraction(console)

    masker = SensitiveValueMasker()
    masking_filter = install_masking_filter(masker)

    try:
        try:
            found = ConfigLoader().load_from_environment(cwd, stdin)
        except ConfigNotFoundError:
            if stdin.isatty():
                return offer_init(cwd, interaction, console)
            raise

        config = found.config
        configure_logging(config.options.log_level)

        if found.source is not None:
            # Relative working directories are relative to the config file
            os.chdir(found.source.parent)

        namespace = build_parser(config).parse_args(args)
        arguments = NamespaceArgumentResolver(namespace)
        context = CommandTreeResolver(config).resolve(command_path(namespace), arguments)

        runner = ProcessRunner(print_commands=config.options.print_commands, console=console)
        resolver = VariableResolver(
            runner,
            interaction,
            arguments,
            masker=masker,
            print_variables=config.options.print_variables,
            console=console,
        )
        variables = resolver.resolve(context.variables)

        ActionExecutor(runner, interaction, arguments).execute_command(context.command, variables)
        return 0

    except DingusError as e:
        report_error(e)
        return e.exit_code

    finally:
        remove_masking_filter(masking_filter)
