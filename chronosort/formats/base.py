"""Abstract base class for capture-date locators."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import BinaryIO

from chronosort.config import ExtractorConfig


class DateLocator(ABC):
    """Base class for all date locator strategies.

    Each locator knows where one family of containers keeps its TIFF/Exif
    structure (or, for the fallback, how to find a bare date string).
    Locators may leave the stream at any position; the caller rewinds
    before trying the next one.
    """

    name = "base"

    def applies_to(self, ext: str) -> bool:
        """Check if this locator should be tried for the given extension."""
        return True

    @abstractmethod
    def locate(self, f: BinaryIO, ext: str, config: ExtractorConfig) -> datetime:
        """Return the capture date or raise an ExtractionError subclass."""
        ...
