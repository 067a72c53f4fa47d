"""
Template substitution for command text.
Expands $name placeholders from a resolved variable map; \\$ escapes a dollar.
"""

import logging
import re
from typing import List, Mapping, Set, Union


logger = logging.getLogger(__name__)


class TemplateSubstitutor:
    """
    Expands ``$name`` placeholders in command text.

    A name is the maximal run of ASCII letters, digits and underscores after
    the ``$``. Names missing from the variable map are left in place, dollar
    included, so a downstream shell can still expand them.
    """

    # Either an escaped dollar or a placeholder (name may be empty)
    TOKEN_PATTERN = re.compile(r'\\\$|\$([A-Za-z0-9_]*)')

    def __init__(self):
        """Initialize the substitutor."""
        self.unresolved: Set[str] = set()

    def substitute(
        self,
        value: Union[str, List[str]],
        variables: Mapping[str, str]
    ) -> Union[str, List[str]]:
        """
        Substitute variables in a string or list of strings.

        Args:
            value: Text (or argv list) containing $name references
            variables: Resolved variable map

        Returns:
            Value with known placeholders expanded
        """
        self.unresolved.clear()

        if isinstance(value, str):
            return self._substitute_string(value, variables)
        elif isinstance(value, list):
            return [self._substitute_string(item, variables) for item in value]
        else:
            raise TypeError(f"Cannot substitute into {type(value).__name__}")

    def _substitute_string(self, text: str, variables: Mapping[str, str]) -> str:
        def replace(match):
            if match.group(0) == '\\$':
                return '$'

            name = match.group(1)
            if name in variables:
                return variables[name]

            if name:
                self.unresolved.add(name)
            return match.group(0)

        result = self.TOKEN_PATTERN.sub(replace, text)

        if self.unresolved:
            logger.debug(f"Left unresolved placeholders in place: {sorted(self.unresolved)}")

        return result


def substitute(text: str, variables: Mapping[str, str]) -> str:
    """Expand ``$name`` placeholders in ``text`` using ``variables``."""
    return TemplateSubstitutor().substitute(text, variables)
