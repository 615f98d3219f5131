"""JPEG locator -- walks marker segments to the APP1 Exif block."""

import struct
from datetime import datetime
from typing import BinaryIO

from chronosort.config import ExtractorConfig
from chronosort.errors import ExtractionError, NoExifInJpeg
from chronosort.formats.base import DateLocator
from chronosort.tiff import read_datetime

JPEG_EXTENSIONS = {'.jpg', '.jpeg'}

SOI = b'\xFF\xD8'
APP1 = 0xE1
SOS = 0xDA
EOI = 0xD9
EXIF_IDENTIFIER = b'Exif\x00\x00'

# Markers that carry no length field
_STANDALONE_MARKERS = {0x01} | set(range(0xD0, 0xD8))


class JPEGLocator(DateLocator):
    """Finds the Exif TIFF structure inside a JPEG APP1 segment."""

    name = "jpeg"

    def applies_to(self, ext: str) -> bool:
        return ext in JPEG_EXTENSIONS

    def locate(self, f: BinaryIO, ext: str, config: ExtractorConfig) -> datetime:
        if f.read(2) != SOI:
            raise NoExifInJpeg('not a valid JPEG file (missing SOI marker)')

        last_error = None
        while True:
            marker = f.read(2)
            if len(marker) < 2:
                break
            if marker[0] != 0xFF:
                # Not on a marker boundary; resync one byte at a time
                f.seek(-1, 1)
                continue
            code = marker[1]
            if code == 0xFF:
                # Fill byte before the real marker
                f.seek(-1, 1)
                continue
            if code in (SOS, EOI):
                # No metadata segments follow
                break
            if code in _STANDALONE_MARKERS:
                continue

            length_bytes = f.read(2)
            if len(length_bytes) < 2:
                break
            length = struct.unpack('>H', length_bytes)[0]
            if length < 2:
                raise NoExifInJpeg(f'corrupt JPEG segment length {length}')
            segment_end = f.tell() + length - 2

            if code == APP1 and f.read(6) == EXIF_IDENTIFIER:
                try:
                    return read_datetime(f)
                except ExtractionError as e:
                    last_error = e

            f.seek(segment_end)

        if last_error is not None:
            raise NoExifInJpeg(f'Exif segment did not yield a date: {last_error}')
        raise NoExifInJpeg('no EXIF data found in JPEG structure')
