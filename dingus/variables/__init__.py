"""
Variable substitution module.
The resolver lives in dingus.variables.resolver.
"""

from .substitution import TemplateSubstitutor, substitute

__all__ = ['TemplateSubstitutor', 'substitute']
