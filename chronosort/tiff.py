"""Low-level TIFF/IFD parser for embedded capture dates -- stdlib only (struct module).

Reads a TIFF header at the *current* stream position, so the same code
serves plain TIFF-based RAW files, Exif blocks inside JPEG APP1 segments,
and RAW containers whose TIFF structure starts at a vendor-specific offset.
All offsets stored in the structure are relative to the header start.
"""

import io
import re
import struct
from datetime import datetime
from typing import BinaryIO, Dict, List, Optional, Tuple

from chronosort.errors import (
    InvalidByteOrder,
    InvalidIfdOffset,
    InvalidTiffMarker,
    NoDateTimeFound,
    TruncatedData,
    ExtractionError,
)

# TIFF type definitions: {type_id: (element_size_bytes, struct_format_char)}
TIFF_TYPES: Dict[int, Tuple[int, str]] = {
    1: (1, 'B'),    # BYTE
    2: (1, 's'),    # ASCII
    3: (2, 'H'),    # SHORT
    4: (4, 'I'),    # LONG
    5: (8, 'II'),   # RATIONAL (num/denom)
    6: (1, 'b'),    # SBYTE
    7: (1, 's'),    # UNDEFINED
    8: (2, 'h'),    # SSHORT
    9: (4, 'i'),    # SLONG
    10: (8, 'ii'),  # SRATIONAL
    11: (4, 'f'),   # FLOAT
    12: (8, 'd'),   # DOUBLE
}

TYPE_ASCII = 2

TAG_DATETIME = 0x0132
TAG_DATETIME_ORIGINAL = 0x9003
TAG_DATETIME_DIGITIZED = 0x9004
EXIF_IFD_POINTER_TAG = 34665

# Most preferred first
DATETIME_TAG_PRIORITY: Tuple[int, ...] = (
    TAG_DATETIME_ORIGINAL,
    TAG_DATETIME_DIGITIZED,
    TAG_DATETIME,
)

IFD_ENTRY_SIZE = 12

EXIF_DATETIME_FORMAT = '%Y:%m:%d %H:%M:%S'
EXIF_DATETIME_LENGTH = 19
_EXIF_DATETIME_RE = re.compile(r'\d{4}:\d{2}:\d{2} \d{2}:\d{2}:\d{2}\Z', re.ASCII)


class IFDEntry:
    """A single 12-byte IFD entry with its value position resolved."""
    __slots__ = ('tag_id', 'dtype', 'count', 'value_offset')

    def __init__(self, tag_id: int, dtype: int, count: int, value_offset: int):
        self.tag_id = tag_id
        self.dtype = dtype
        self.count = count
        self.value_offset = value_offset  # absolute stream position


class TIFFHeader:
    """Parsed TIFF header.

    ``base`` is the stream position of the byte-order marker; every
    offset inside the structure is relative to it.
    """
    __slots__ = ('endian', 'base', 'first_ifd_offset')

    def __init__(self, endian: str, base: int, first_ifd_offset: int):
        self.endian = endian
        self.base = base
        self.first_ifd_offset = first_ifd_offset


def read_exact(f: BinaryIO, size: int) -> bytes:
    """Read exactly ``size`` bytes or raise TruncatedData."""
    pos = f.tell()
    data = f.read(size)
    if len(data) < size:
        raise TruncatedData(
            f'needed {size} bytes at offset {pos}, only {len(data)} remain')
    return data


def _stream_size(f: BinaryIO) -> int:
    pos = f.tell()
    end = f.seek(0, io.SEEK_END)
    f.seek(pos)
    return end


def parse_exif_datetime(raw) -> datetime:
    """Parse the fixed 19-character ``YYYY:MM:DD HH:MM:SS`` layout.

    Accepts bytes or str. Raises ValueError for anything else, including
    non-ASCII bytes and impossible calendar values.
    """
    text = raw.decode('ascii') if isinstance(raw, (bytes, bytearray)) else raw
    if not _EXIF_DATETIME_RE.match(text):
        raise ValueError(f'not an Exif date/time: {text!r}')
    return datetime.strptime(text, EXIF_DATETIME_FORMAT)


def read_header(f: BinaryIO) -> TIFFHeader:
    """Read and validate a TIFF header starting at the current position."""
    base = f.tell()
    bo = read_exact(f, 2)
    if bo == b'II':
        endian = '<'
    elif bo == b'MM':
        endian = '>'
    else:
        raise InvalidByteOrder(f'invalid TIFF byte order marker {bo!r}')

    magic = struct.unpack(endian + 'H', read_exact(f, 2))[0]
    if magic != 42:
        raise InvalidTiffMarker(f'invalid TIFF marker {magic} (expected 42)')

    ifd_offset = struct.unpack(endian + 'I', read_exact(f, 4))[0]
    return TIFFHeader(endian, base, ifd_offset)


def _read_ifd_entries(f: BinaryIO, header: TIFFHeader, ifd_offset: int
                      ) -> Tuple[List[IFDEntry], Optional[TruncatedData]]:
    """Entries of the IFD, stopping early if the table runs past the data.

    Returns the entries read and the TruncatedData raised by the first
    incomplete entry, or None if the whole table was present.
    """
    endian = header.endian
    position = header.base + ifd_offset
    if position + 2 > _stream_size(f):
        raise InvalidIfdOffset(
            f'IFD offset {ifd_offset} lies beyond the end of the data')
    f.seek(position)

    num_entries = struct.unpack(endian + 'H', read_exact(f, 2))[0]

    entries = []
    for _ in range(num_entries):
        entry_offset = f.tell()
        try:
            data = read_exact(f, IFD_ENTRY_SIZE)
        except TruncatedData as e:
            return entries, e
        tag_id, dtype, count = struct.unpack(endian + 'HHI', data[:8])
        elem_size = TIFF_TYPES.get(dtype, (1, 'B'))[0]
        if elem_size * count <= 4:
            value_offset = entry_offset + 8
        else:
            value_offset = header.base + struct.unpack(endian + 'I', data[8:12])[0]
        entries.append(IFDEntry(tag_id, dtype, count, value_offset))
    return entries, None


def read_ifd(f: BinaryIO, header: TIFFHeader, ifd_offset: int) -> List[IFDEntry]:
    """Read all entries of the IFD at ``ifd_offset`` (relative to the header).

    Raises TruncatedData if the table is cut short.
    """
    entries, truncated = _read_ifd_entries(f, header, ifd_offset)
    if truncated is not None:
        raise truncated
    return entries


def read_tag_long(f: BinaryIO, header: TIFFHeader,
                  entry: IFDEntry) -> Optional[int]:
    """Read a single SHORT or LONG value (e.g. a sub-IFD pointer)."""
    if entry.count != 1 or entry.dtype not in (3, 4):
        return None
    fmt_char = TIFF_TYPES[entry.dtype][1]
    f.seek(entry.value_offset)
    data = f.read(struct.calcsize(fmt_char))
    if len(data) < struct.calcsize(fmt_char):
        return None
    return struct.unpack(header.endian + fmt_char, data)[0]


def read_tag_datetime(f: BinaryIO, entry: IFDEntry) -> Optional[datetime]:
    """Read an ASCII date tag value. Returns None if it does not parse.

    Reads the 19 date characters plus the NUL terminator when present.
    """
    if entry.dtype != TYPE_ASCII or entry.count <= 4:
        # Too short to hold a date; value would be inline garbage
        return None
    f.seek(entry.value_offset)
    raw = f.read(EXIF_DATETIME_LENGTH + 1)
    try:
        return parse_exif_datetime(raw[:EXIF_DATETIME_LENGTH])
    except ValueError:
        return None


def _collect_datetimes(f: BinaryIO,
                       entries: List[IFDEntry]) -> Dict[int, datetime]:
    found: Dict[int, datetime] = {}
    for entry in entries:
        if entry.tag_id not in DATETIME_TAG_PRIORITY or entry.tag_id in found:
            continue
        value = read_tag_datetime(f, entry)
        if value is not None:
            found[entry.tag_id] = value
    return found


def read_exif_sub_ifd(f: BinaryIO, header: TIFFHeader,
                      entries: List[IFDEntry]) -> List[IFDEntry]:
    """Follow tag 34665 (ExifIFDPointer) and read the sub-IFD it points to.

    Returns an empty list if the tag is absent or the pointer is unusable.
    A sub-IFD cut short by the end of the data yields the entries before
    the cut.
    """
    for entry in entries:
        if entry.tag_id == EXIF_IFD_POINTER_TAG:
            sub_offset = read_tag_long(f, header, entry)
            if not sub_offset:
                return []
            try:
                return _read_ifd_entries(f, header, sub_offset)[0]
            except ExtractionError:
                return []
    return []


def read_datetime(f: BinaryIO) -> datetime:
    """Locate the capture date in the TIFF structure at the current position.

    Searches IFD0 and, if IFD0 points to one, the Exif sub-IFD. Returns
    the most preferred tag that parsed: DateTimeOriginal, then
    DateTimeDigitized, then DateTime. Date tags that are too short or do
    not parse are skipped. Entries before a truncation still count; the
    truncation is only reported when none of them held a date.
    """
    header = read_header(f)
    entries, truncated = _read_ifd_entries(f, header, header.first_ifd_offset)

    found = _collect_datetimes(f, entries)
    for tag_id, value in _collect_datetimes(
            f, read_exif_sub_ifd(f, header, entries)).items():
        found.setdefault(tag_id, value)

    for tag_id in DATETIME_TAG_PRIORITY:
        if tag_id in found:
            return found[tag_id]
    if truncated is not None:
        raise truncated
    raise NoDateTimeFound('no date/time tag found in TIFF structure')
