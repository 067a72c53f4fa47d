"""
Masking of sensitive variable values.

Values entered through password prompts are registered here so that debug
logs and printed variables never show them.
"""

import logging
import re
from typing import Iterable, Optional, Set


MASK = "***"


class SensitiveValueMasker:
    """
    Tracks sensitive values and masks them in text.

    Empty values are never registered, masking them would corrupt every
    string.
    """

    def __init__(self):
        """Initialize masker."""
        self._masked_values: Set[str] = set()

    def register(self, value: str):
        """Mark ``value`` as sensitive."""
        if value:
            self._masked_values.add(value)

    def register_all(self, values: Iterable[str]):
        for value in values:
            self.register(value)

    def is_sensitive(self, value: str) -> bool:
        return value in self._masked_values

    def mask_text(self, text: str) -> str:
        """
        Mask known sensitive values in text.

        Args:
            text: Text potentially containing sensitive values

        Returns:
            Text with sensitive values replaced by '***'
        """
        if not text or not self._masked_values:
            return text

        masked = text
        # Longer values first so a value containing another is masked whole
        for value in sorted(self._masked_values, key=len, reverse=True):
            if value in masked:
                masked = re.sub(re.escape(value), MASK, masked)

        return masked

    def clear(self):
        """Forget every registered value."""
        self._masked_values.clear()


class MaskingFilter(logging.Filter):
    """
    Logging filter for masking sensitive values in log records.

    Attach to handlers so that masking happens however the record was
    produced.
    """

    def __init__(self, masker: SensitiveValueMasker):
        """
        Initialize filter with a masker.

        Args:
            masker: Masker holding the values to hide
        """
        super().__init__()
        self.masker = masker

    def filter(self, record):
        """Mask the message and its args; always pass the record through."""
        if isinstance(record.msg, str):
            record.msg = self.masker.mask_text(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: self.masker.mask_text(value) if isinstance(value, str) else value
                    for key, value in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self.masker.mask_text(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return True


def install_masking_filter(masker: SensitiveValueMasker, logger: Optional[logging.Logger] = None) -> MaskingFilter:
    """Attach a MaskingFilter to every handler of ``logger`` (root by default)."""
    target = logger or logging.getLogger()
    masking_filter = MaskingFilter(masker)
    for handler in target.handlers:
        handler.addFilter(masking_filter)
    return masking_filter


def remove_masking_filter(masking_filter: MaskingFilter, logger: Optional[logging.Logger] = None):
    """Detach a filter added by install_masking_filter."""
    target = logger or logging.getLogger()
    for handler in target.handlers:
        handler.removeFilter(masking_filter)
