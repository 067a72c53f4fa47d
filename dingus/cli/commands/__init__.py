"""CLI command implementations."""

from .init import offer_init
from .run import run_command

__all__ = ['run_command', 'offer_init']
