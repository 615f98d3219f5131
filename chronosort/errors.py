"""Extraction error taxonomy.

Every locator and the TIFF parser raise one of these instead of returning
a placeholder date, so callers can tell "not this format" from "corrupt
metadata" from "no date present".
"""

from typing import List, Optional


class ExtractionError(Exception):
    """Base class for all capture-date extraction failures."""


class InvalidByteOrder(ExtractionError):
    """TIFF header does not start with II or MM."""


class InvalidTiffMarker(ExtractionError):
    """TIFF magic number is not 42."""


class InvalidIfdOffset(ExtractionError):
    """IFD offset points outside the stream."""


class TruncatedData(ExtractionError):
    """A read needed more bytes than remained in the stream."""


class NoExifInJpeg(ExtractionError):
    """JPEG has no APP1/Exif segment, or it did not parse."""


class NoTiffAtKnownOffsets(ExtractionError):
    """None of the candidate RAW header offsets yielded a usable TIFF."""


class NoDateTimeFound(ExtractionError):
    """Structure parsed, but no recognised date/time value was present."""


class NoDateTimeInformation(ExtractionError):
    """Every extraction strategy failed.

    ``failures`` holds ``(strategy_name, error)`` pairs in the order the
    strategies were tried.
    """

    def __init__(self, message: str,
                 failures: Optional[List[tuple]] = None):
        super().__init__(message)
        self.failures = failures or []


class UnsupportedFormat(NoDateTimeInformation):
    """File extension names a container the extractor does not read."""
