"""Last-resort date string scanner.

Looks for text shaped like an Exif date (``YYYY:MM:DD HH:MM:SS``) anywhere
in the raw bytes. Used when no TIFF structure could be located.
"""

import io
import re
from datetime import datetime
from typing import BinaryIO, Iterator, Optional, Tuple

from chronosort.config import ExtractorConfig
from chronosort.errors import NoDateTimeFound
from chronosort.tiff import EXIF_DATETIME_LENGTH, parse_exif_datetime

# Punctuation shape only: colon at 4, 7, 13, 16 and a space at 10.
# Lookahead so overlapping windows are all tried.
DATE_SHAPE_PATTERN = re.compile(rb'(?=(.{4}:.{2}:.{2} .{2}:.{2}:.{2}))', re.DOTALL)

# A window can start in one chunk and end in the next
_CARRY = EXIF_DATETIME_LENGTH - 1


def iter_date_candidates(data: bytes) -> Iterator[Tuple[int, bytes]]:
    """Yield (offset, 19-byte window) for every window with the date shape."""
    for m in DATE_SHAPE_PATTERN.finditer(data):
        yield m.start(), m.group(1)


def parse_plausible_datetime(window: bytes,
                             config: ExtractorConfig) -> Optional[datetime]:
    """Parse a candidate window; None unless it is a real date in range."""
    try:
        value = parse_exif_datetime(window)
    except ValueError:
        return None
    if not config.is_plausible_year(value.year):
        return None
    return value


def scan_for_datetime(f: BinaryIO,
                      config: Optional[ExtractorConfig] = None) -> datetime:
    """Scan the stream from its start for the first plausible date string.

    Reads ``config.chunk_size`` chunks until ``config.scan_limit`` bytes
    have been examined.
    """
    config = config or ExtractorConfig.default()
    f.seek(0)

    examined = 0
    tail = b''
    while examined < config.scan_limit:
        chunk = f.read(min(config.chunk_size, config.scan_limit - examined))
        if not chunk:
            break
        examined += len(chunk)

        data = tail + chunk
        for _, window in iter_date_candidates(data):
            value = parse_plausible_datetime(window, config)
            if value is not None:
                return value
        tail = data[-_CARRY:]

    raise NoDateTimeFound(
        f'no date/time string in the first {examined} bytes')


def scan_bytes_for_datetime(data: bytes,
                            config: Optional[ExtractorConfig] = None) -> datetime:
    """Convenience wrapper over an in-memory buffer."""
    return scan_for_datetime(io.BytesIO(data), config)
