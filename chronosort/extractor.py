"""Capture-date extraction -- tries locator strategies in priority order.

Pure function over an in-memory buffer: no shared state, safe to call
concurrently as long as each call gets its own buffer.
"""

import io
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from chronosort.config import ExtractorConfig, normalize_extension
from chronosort.errors import (
    ExtractionError,
    NoDateTimeInformation,
    UnsupportedFormat,
)
from chronosort.formats import get_locators
from chronosort.models import DateResult

logger = logging.getLogger(__name__)

# Formats expected to yield a date when well-formed
SUPPORTED_EXTENSIONS = {'.jpg', '.jpeg', '.nef', '.cr2', '.cr3', '.arw',
                        '.dng', '.raw', '.heic', '.heif', '.raf', '.rw2'}

# Rejected outright rather than scanned for stray date strings
VIDEO_EXTENSIONS = {'.mov', '.mp4', '.qt', '.m4v', '.avi', '.mkv', '.3gp',
                    '.mts', '.m2ts', '.wmv', '.webm', '.mpg', '.mpeg'}


def get_image_datetime(buffer: bytes, file_ext: str,
                       config: Optional[ExtractorConfig] = None) -> datetime:
    """Extract the capture date from a complete file buffer.

    Args:
        buffer: Entire file content.
        file_ext: File extension including the dot (case-insensitive).
        config: Offset tables and scan limits; built-in defaults if None.

    Returns:
        Naive datetime taken from the embedded Exif-style string.

    Raises:
        UnsupportedFormat: ``file_ext`` is a video container.
        NoDateTimeInformation: every strategy failed. ``failures`` lists
            the individual errors.
    """
    ext = normalize_extension(file_ext)
    if ext in VIDEO_EXTENSIONS:
        raise UnsupportedFormat(f'video container {ext} is not supported')

    config = config or ExtractorConfig.default()
    reader = io.BytesIO(buffer)
    failures = []

    for locator in get_locators(ext):
        reader.seek(0)
        try:
            return locator.locate(reader, ext, config)
        except ExtractionError as e:
            logger.debug('%s locator failed for %s buffer: %s',
                         locator.name, ext or '<no extension>', e)
            failures.append((locator.name, e))

    raise NoDateTimeInformation('no date/time information found', failures)


def extract_file_datetime(filepath, config: Optional[ExtractorConfig] = None) -> datetime:
    """Read a file fully into memory and extract its capture date."""
    filepath = Path(filepath)
    return get_image_datetime(filepath.read_bytes(), filepath.suffix, config)


def date_file(filepath, config: Optional[ExtractorConfig] = None) -> DateResult:
    """Extract a file's capture date, reporting failures instead of raising."""
    filepath = Path(filepath)
    t0 = time.monotonic()
    try:
        taken = extract_file_datetime(filepath, config)
        error = None
    except (ExtractionError, OSError) as e:
        taken = None
        error = f'{type(e).__name__}: {e}'
    elapsed = (time.monotonic() - t0) * 1000
    return DateResult(filepath=filepath, taken=taken, error=error,
                      elapsed_ms=elapsed)
