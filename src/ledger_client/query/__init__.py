"""
Account query builders.
"""

from .gma_builder import GmaBuilder, GmaBuilderOptions
from .gpa_builder import DataSizeFilter, GpaBuilder, MemcmpFilter, encode_comparand

__all__ = [
    "GpaBuilder",
    "GmaBuilder",
    "GmaBuilderOptions",
    "MemcmpFilter",
    "DataSizeFilter",
    "encode_comparand",
]
