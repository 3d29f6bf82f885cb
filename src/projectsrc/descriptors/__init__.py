"""Assembly descriptor reading and resolution."""

from .builtin import BUILTIN_DESCRIPTORS
from .reader import DescriptorReader, interpolation_values
from .resolver import DescriptorResolver

__all__ = [
    "BUILTIN_DESCRIPTORS",
    "DescriptorReader",
    "DescriptorResolver",
    "interpolation_values",
]
