"""Offer to create a default config file when none exists."""

import logging
from pathlib import Path

from rich.console import Console
from rich.text import Text

from dingus.exceptions import ConfigNotFoundError, PromptError
from dingus.interaction import InteractionProvider
from dingus.loader import init_config


logger = logging.getLogger(__name__)

INIT_QUESTION = "Config file not found. Create a default one in the current directory?"


def offer_init(directory: Path, interaction: InteractionProvider, console: Console) -> int:
    """
    Ask whether to write a default config into ``directory``.

    Returns 0 once the file is written.

    Raises:
        ConfigNotFoundError: If the user declines or cancels
    """
    try:
        accepted = interaction.confirm(INIT_QUESTION, default=True)
    except PromptError as e:
        logger.debug(f"Init prompt cancelled: {e}")
        accepted = False

    if not accepted:
        raise ConfigNotFoundError()

    path = init_config(directory)
    console.print(Text(f"created {path.name}"))
    return 0
