"""Tests for $name template substitution."""

import pytest

from dingus.variables import TemplateSubstitutor, substitute


class TestSubstitute:
    """Placeholder grammar."""

    def test_simple_placeholder(self):
        assert substitute("Hello, $name!", {"name": "Dingus"}) == "Hello, Dingus!"

    def test_escaped_dollar_is_literal(self):
        """\\$ yields a dollar and the following name is not expanded."""
        assert substitute("You are \\$age years old.", {"age": "100"}) == "You are $age years old."

    def test_hyphen_terminates_name(self):
        result = substitute("$first_name-the-$last_name", {"first_name": "A", "last_name": "B"})
        assert result == "A-the-B"

    def test_unknown_name_left_untouched(self):
        assert substitute("echo $HOME and $name", {"name": "x"}) == "echo $HOME and x"

    def test_name_is_maximal_run(self):
        """$ab is not $a followed by 'b'."""
        assert substitute("$ab $a", {"a": "1"}) == "$ab 1"

    def test_lone_dollar_kept(self):
        assert substitute("cost: $ 5", {}) == "cost: $ 5"

    def test_digits_and_underscores_in_names(self):
        assert substitute("$v_2.txt", {"v_2": "out"}) == "out.txt"

    def test_substituted_values_are_not_rescanned(self):
        assert substitute("$a", {"a": "$b", "b": "nope"}) == "$b"


class TestTemplateSubstitutor:
    """Substitutor object behavior."""

    def test_list_values(self):
        substitutor = TemplateSubstitutor()
        assert substitutor.substitute(["echo", "$x"], {"x": "hi"}) == ["echo", "hi"]

    def test_unresolved_names_tracked(self):
        substitutor = TemplateSubstitutor()
        substitutor.substitute("$known $missing $other", {"known": "k"})
        assert substitutor.unresolved == {"missing", "other"}

    def test_invalid_type_rejected(self):
        with pytest.raises(TypeError):
            TemplateSubstitutor().substitute(42, {})
