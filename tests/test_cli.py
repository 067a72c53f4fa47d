"""Tests for the command line surface and the run flow."""

import io
import logging
import textwrap
from pathlib import Path

import pytest
from unittest.mock import Mock, patch

from dingus.args import ALIAS_ARGS_DEST, NamespaceArgumentResolver, variable_dest
from dingus.cli.main import main
from dingus.cli.commands import run_command
from dingus.cli.parser import build_parser, command_path, flag_help
from dingus.exceptions import ConfigNotFoundError
from dingus.model import (
    ExecutionVariable,
    ExtendedLiteralVariable,
    LiteralVariable,
    Platform,
    PromptVariable,
    ShellCommand,
)
from dingus.loader import ConfigLoader
from dingus.security import MaskingFilter

from .conftest import ScriptedInteraction, skip_if_no_bash


CONFIG = """
description: Test commands
variables:
  name: Godzilla
  region: global
commands:
  greet:
    aliases: [hi]
    action:
      bash: printf "Hello %s" "$name" > out.txt
  infra:
    description: Infrastructure
    variables:
      region:
        value: eu
        description: Target region
      stage:
        exec: echo dev
        arg: env
    commands:
      deploy:
        action: echo $stage $region
  both:
    action: echo both
    commands:
      sub:
        action: echo sub
  secret:
    hidden: true
    action: echo hidden
  wrap:
    alias: git log
"""


def load_config(text=CONFIG):
    return ConfigLoader(Platform.LINUX, {}).load_text(textwrap.dedent(text), Path.cwd())


class TestParser:
    """Parser generated from the command tree."""

    @pytest.fixture
    def parser(self):
        return build_parser(load_config())

    def test_command_path(self, parser):
        namespace = parser.parse_args(["infra", "deploy"])
        assert command_path(namespace) == ["infra", "deploy"]

    def test_alias_recorded_as_typed(self, parser):
        assert command_path(parser.parse_args(["hi"])) == ["hi"]

    def test_inherited_flags(self, parser):
        namespace = parser.parse_args(["infra", "deploy", "--name", "Rodan", "--env", "prod"])
        arguments = NamespaceArgumentResolver(namespace)

        assert arguments.get("name") == "Rodan"
        assert arguments.get("env") == "prod"
        assert arguments.get("region") is None

    def test_flag_before_subcommand(self, parser):
        namespace = parser.parse_args(["--name", "Rodan", "greet"])
        assert getattr(namespace, variable_dest("name")) == "Rodan"

    def test_child_flag_not_on_parent(self, parser):
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--env", "prod", "greet"])
        assert exc_info.value.code == 2

    def test_command_without_action_requires_subcommand(self, parser):
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["infra"])
        assert exc_info.value.code == 2

    def test_command_with_action_and_subcommands(self, parser):
        assert command_path(parser.parse_args(["both"])) == ["both"]
        assert command_path(parser.parse_args(["both", "sub"])) == ["both", "sub"]

    def test_hidden_command_invocable_but_not_listed(self, parser):
        assert command_path(parser.parse_args(["secret"])) == ["secret"]
        assert "secret" not in parser.format_help()
        assert "greet" in parser.format_help()

    def test_alias_action_without_arguments(self, parser):
        namespace = parser.parse_args(["wrap"])
        assert NamespaceArgumentResolver(namespace).get_many(ALIAS_ARGS_DEST) is None

    def test_alias_action_trailing_arguments(self, parser):
        namespace = parser.parse_args(["wrap", "main", "--oneline"])
        assert NamespaceArgumentResolver(namespace).get_many(ALIAS_ARGS_DEST) == ["main", "--oneline"]


class TestFlagHelp:
    """Help text per variable kind."""

    def test_description_wins(self):
        assert flag_help(ExtendedLiteralVariable("v", description="Explained")) == "Explained"

    def test_literal(self):
        assert flag_help(LiteralVariable("v")) == "(default: v)"

    def test_execution(self):
        assert flag_help(ExecutionVariable(ShellCommand("date"))) == "Defaults to the result of executing date"

    def test_prompt(self):
        assert flag_help(PromptVariable("Name?")) == "Prompts the user for a value if not specified."


class TestRunCommand:
    """End-to-end invocations against a config file."""

    @pytest.fixture
    def workspace(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        return tmp_path

    def write_config(self, workspace, text):
        (workspace / "dingus.yaml").write_text(textwrap.dedent(text))

    def invoke(self, workspace, args, stdin, interaction=None, console=None):
        return run_command(
            args,
            stdin=stdin,
            cwd=workspace,
            interaction=interaction or ScriptedInteraction(),
            console=console or Mock(),
        )

    def test_runs_action_with_flag_override(self, workspace, tty_stdin):
        skip_if_no_bash()
        self.write_config(workspace, CONFIG)

        assert self.invoke(workspace, ["hi", "--name", "Mothra"], tty_stdin) == 0
        assert (workspace / "out.txt").read_text() == "Hello Mothra"

    def test_runs_from_subdirectory_relative_to_config(self, workspace, tty_stdin):
        skip_if_no_bash()
        self.write_config(workspace, CONFIG)
        nested = workspace / "deep" / "er"
        nested.mkdir(parents=True)

        assert self.invoke(nested, ["greet"], tty_stdin) == 0
        assert (workspace / "out.txt").read_text() == "Hello Godzilla"

    def test_failing_action_exit_code_and_message(self, workspace, tty_stdin, caplog):
        skip_if_no_bash()
        self.write_config(workspace, """
            commands:
              fail:
                actions:
                  - bash: exit 3
                  - bash: touch never.txt
        """)

        assert self.invoke(workspace, ["fail"], tty_stdin) == 1
        assert "failed to execute action 0: process exited with code 3" in caplog.text
        assert not (workspace / "never.txt").exists()

    def test_deferred_failures_one_line_each(self, workspace, tty_stdin, caplog):
        skip_if_no_bash()
        self.write_config(workspace, """
            commands:
              cleanup:
                action: "true"
                defer:
                  - bash: exit 1
                  - bash: exit 2
                  - bash: touch ran.txt
        """)

        assert self.invoke(workspace, ["cleanup"], tty_stdin) == 1
        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert errors == [
            "failed to execute deferred action 0: process exited with code 1",
            "failed to execute deferred action 1: process exited with code 2",
        ]
        assert (workspace / "ran.txt").exists()

    def test_declined_confirmation(self, workspace, tty_stdin):
        self.write_config(workspace, """
            commands:
              nuke:
                actions:
                  - confirm: Really?
                  - bash: touch nuked.txt
        """)
        interaction = ScriptedInteraction(confirmations=[False])

        assert self.invoke(workspace, ["nuke"], tty_stdin, interaction) == 1
        assert not (workspace / "nuked.txt").exists()

    def test_prompted_variable(self, workspace, tty_stdin):
        skip_if_no_bash()
        self.write_config(workspace, """
            variables:
              who:
                prompt: {message: Who?}
            commands:
              greet:
                action: {bash: 'printf "%s" "$who" > who.txt'}
        """)
        interaction = ScriptedInteraction(texts=["King Ghidorah"])

        assert self.invoke(workspace, ["greet"], tty_stdin, interaction) == 0
        assert (workspace / "who.txt").read_text() == "King Ghidorah"

    def test_variable_failure_runs_no_actions(self, workspace, tty_stdin, caplog):
        skip_if_no_bash()
        self.write_config(workspace, """
            variables:
              broken:
                exec: {bash: exit 5}
            commands:
              go:
                action: {bash: touch main.txt}
                defer: {bash: touch deferred.txt}
        """)

        assert self.invoke(workspace, ["go"], tty_stdin) == 1
        assert 'failed to resolve variable "broken": process exited with code 5' in caplog.text
        assert not (workspace / "main.txt").exists()
        assert not (workspace / "deferred.txt").exists()

    def test_validation_errors_reported(self, workspace, tty_stdin, caplog):
        self.write_config(workspace, """
            commands:
              a: {}
              b: {action: "true", extra: 1}
        """)

        assert self.invoke(workspace, ["a"], tty_stdin) == 1
        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 2
        assert all(message.startswith("Validation error:") for message in errors)

    def test_unknown_command_is_usage_error(self, workspace, tty_stdin):
        self.write_config(workspace, CONFIG)

        with pytest.raises(SystemExit) as exc_info:
            self.invoke(workspace, ["nope"], tty_stdin)
        assert exc_info.value.code == 2

    def test_shared_flag_goes_to_inner_variable(self, workspace, tty_stdin):
        skip_if_no_bash()
        self.write_config(workspace, """
            variables:
              a: {value: parent-default, arg: x}
            commands:
              child:
                variables:
                  x: child-default
                action: {bash: 'printf "%s %s" "$a" "$x" > out.txt'}
        """)

        assert self.invoke(workspace, ["child", "--x", "override"], tty_stdin) == 0
        assert (workspace / "out.txt").read_text() == "parent-default override"

    def test_repeated_runs_leave_no_masking_filters(self, workspace, tty_stdin):
        self.write_config(workspace, """
            commands:
              ok: {action: "true"}
        """)

        def masking_filters():
            return [f for h in logging.getLogger().handlers for f in h.filters if isinstance(f, MaskingFilter)]

        before = len(masking_filters())
        for _ in range(3):
            self.invoke(workspace, ["ok"], tty_stdin)

        assert len(masking_filters()) == before

    def test_piped_config(self, workspace):
        skip_if_no_bash()
        stdin = io.StringIO("commands: {make: {action: {bash: touch piped.txt}}}\n")

        assert self.invoke(workspace, ["make"], stdin) == 0
        assert (workspace / "piped.txt").exists()

    def test_printed_commands(self, workspace, tty_stdin):
        skip_if_no_bash()
        self.write_config(workspace, """
            options: {print_commands: true}
            variables: {x: value}
            commands:
              show: {action: echo $x}
        """)
        console = Mock()

        assert self.invoke(workspace, ["show"], tty_stdin, console=console) == 0
        printed = ["".join(str(part) for part in c.args) for c in console.print.call_args_list]
        assert "Executing: echo value" in printed


class TestInit:
    """Offering a default config when none exists."""

    def test_accepting_creates_default_config(self, tmp_path, tty_stdin):
        interaction = ScriptedInteraction(confirmations=[True])
        console = Mock()

        with patch('dingus.loader.find_config_file', side_effect=ConfigNotFoundError()):
            code = run_command(["greet"], stdin=tty_stdin, cwd=tmp_path, interaction=interaction, console=console)

        assert code == 0
        assert (tmp_path / "dingus.yaml").exists()
        assert interaction.asked[0]['default'] is True
        assert str(console.print.call_args.args[0]) == "created dingus.yaml"

    def test_declining_reports_not_found(self, tmp_path, tty_stdin, caplog):
        interaction = ScriptedInteraction(confirmations=[False])

        with patch('dingus.loader.find_config_file', side_effect=ConfigNotFoundError()):
            code = run_command(["greet"], stdin=tty_stdin, cwd=tmp_path, interaction=interaction, console=Mock())

        assert code == 1
        assert not (tmp_path / "dingus.yaml").exists()
        assert "config file not found" in caplog.text


class TestMain:
    """Entry point."""

    def test_main_delegates_to_run_command(self):
        with patch('dingus.cli.main.run_command', return_value=0) as mock_run:
            assert main(["greet"]) == 0
        mock_run.assert_called_once_with(["greet"])
