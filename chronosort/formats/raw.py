"""RAW locators -- TIFF structure at the start of the file or at a vendor offset."""

import logging
from datetime import datetime
from typing import BinaryIO

from chronosort.config import ExtractorConfig
from chronosort.errors import ExtractionError, NoTiffAtKnownOffsets
from chronosort.formats.base import DateLocator
from chronosort.tiff import read_datetime

logger = logging.getLogger(__name__)


class PlainTIFFLocator(DateLocator):
    """RAW formats that are themselves valid TIFF files (NEF, DNG, ...)."""

    name = "tiff"

    def locate(self, f: BinaryIO, ext: str, config: ExtractorConfig) -> datetime:
        return read_datetime(f)


class OffsetTIFFLocator(DateLocator):
    """RAW formats whose TIFF header does not begin at byte 0.

    Tries each candidate offset for the extension in order. A structure
    that parses but carries an implausible year is treated as a
    coincidental match and the next offset is tried.
    """

    name = "offsets"

    def locate(self, f: BinaryIO, ext: str, config: ExtractorConfig) -> datetime:
        offsets = config.offsets_for(ext)
        for offset in offsets:
            f.seek(offset)
            try:
                value = read_datetime(f)
            except ExtractionError as e:
                logger.debug('No TIFF date at offset %d: %s', offset, e)
                continue
            if config.is_plausible_year(value.year):
                return value
            logger.debug('Rejected implausible date %s at offset %d', value, offset)

        raise NoTiffAtKnownOffsets(
            f"couldn't find EXIF data at known offsets {list(offsets)}")
