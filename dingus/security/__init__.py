"""Security module for masking sensitive values."""

from .masking import SensitiveValueMasker, MaskingFilter, install_masking_filter, remove_masking_filter

__all__ = ['SensitiveValueMasker', 'MaskingFilter', 'install_masking_filter', 'remove_masking_filter']
