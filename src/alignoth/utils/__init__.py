"""Utility functions for alignoth.

- Region arithmetic and 1-based boundary parsing
- Logging configuration

Example:
    >>> from alignoth.utils import parse_region, Region
    >>> region = parse_region("chr1:1000-2000")
"""

from alignoth.utils.regions import (
    Region,
    UnknownTargetError,
    parse_region,
    region_to_str,
)

__all__ = [
    "Region",
    "UnknownTargetError",
    "parse_region",
    "region_to_str",
]
