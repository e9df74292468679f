"""
Program registry.
"""

from .client import ProgramClient
from .program import ErrorResolver, Program, parse_custom_error_code

__all__ = ["Program", "ProgramClient", "ErrorResolver", "parse_custom_error_code"]
