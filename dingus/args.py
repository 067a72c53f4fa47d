"""Access to values supplied on the command line."""

import argparse
from typing import Dict, List, Mapping, Optional


# Namespace attribute prefix for variable flags, keeps them clear of
# argparse's own destinations.
VARIABLE_DEST_PREFIX = "variable:"

# Namespace attribute holding trailing arguments for alias actions.
ALIAS_ARGS_DEST = "alias_args"


def variable_dest(flag: str) -> str:
    return f"{VARIABLE_DEST_PREFIX}{flag}"


class ArgumentResolver:
    """Looks up values supplied on the command line by flag name."""

    def get(self, name: str) -> Optional[str]:
        """Value for ``--name`` if it was supplied, else None."""
        raise NotImplementedError

    def get_many(self, name: str) -> Optional[List[str]]:
        """Values for a multi-valued argument if any were supplied, else None."""
        raise NotImplementedError


class MappingArgumentResolver(ArgumentResolver):
    """Argument resolver over a plain mapping, handy for programmatic use."""

    def __init__(self, values: Optional[Mapping[str, str]] = None,
                 many: Optional[Mapping[str, List[str]]] = None):
        self.values: Dict[str, str] = dict(values or {})
        self.many: Dict[str, List[str]] = dict(many or {})

    def get(self, name: str) -> Optional[str]:
        return self.values.get(name)

    def get_many(self, name: str) -> Optional[List[str]]:
        values = self.many.get(name)
        return list(values) if values else None


class NamespaceArgumentResolver(ArgumentResolver):
    """Argument resolver over an argparse namespace built by dingus.cli.parser."""

    def __init__(self, namespace: argparse.Namespace):
        self.namespace = namespace

    def get(self, name: str) -> Optional[str]:
        return getattr(self.namespace, variable_dest(name), None)

    def get_many(self, name: str) -> Optional[List[str]]:
        values = list(getattr(self.namespace, name, None) or [])
        # Separator used to pass option-like arguments through
        if values[:1] == ["--"]:
            values = values[1:]
        if not values:
            return None
        return values
