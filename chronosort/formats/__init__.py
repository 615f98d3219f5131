"""Locator registry -- fixed strategy order, filtered by extension."""

from typing import List

from chronosort.config import normalize_extension
from chronosort.formats.base import DateLocator
from chronosort.formats.fallback import DateStringLocator
from chronosort.formats.jpeg import JPEG_EXTENSIONS, JPEGLocator
from chronosort.formats.raw import OffsetTIFFLocator, PlainTIFFLocator

# Registered locators in priority order (most specific first)
_LOCATORS: List[DateLocator] = [
    JPEGLocator(),
    PlainTIFFLocator(),
    OffsetTIFFLocator(),
    DateStringLocator(),  # Fallback for anything with a date string
]


def get_locators(ext: str) -> List[DateLocator]:
    """Locators to try for a file extension, in order."""
    ext = normalize_extension(ext)
    return [loc for loc in _LOCATORS if loc.applies_to(ext)]


__all__ = [
    "DateLocator",
    "JPEGLocator",
    "PlainTIFFLocator",
    "OffsetTIFFLocator",
    "DateStringLocator",
    "JPEG_EXTENSIONS",
    "get_locators",
]
