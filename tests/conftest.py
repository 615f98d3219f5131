"""Shared test fixtures -- synthetic TIFF/JPEG/RAW buffer and file generators."""

import io
import struct
import pytest
from pathlib import Path

from PIL import Image

DATE_ORIGINAL = b'2023:06:15 14:30:45\x00'
DATE_DIGITIZED = b'2023:06:15 14:31:00\x00'
DATE_MODIFIED = b'2024:01:02 09:00:00\x00'


def build_tiff(entries, endian='<', extra_data=None):
    """Build a minimal TIFF structure in memory with given IFD entries.

    Args:
        entries: List of (tag_id, type_id, count, value_or_bytes) tuples.
            For inline values (<=4 bytes), pass an int.
            For out-of-line values, pass bytes.
        endian: '<' for little-endian, '>' for big-endian.
        extra_data: Optional bytes to append after the IFD.

    Returns:
        bytes: TIFF content; all offsets are relative to its first byte.
    """
    bo = b'II' if endian == '<' else b'MM'
    header = bo + struct.pack(endian + 'H', 42)

    # IFD starts at offset 8
    header += struct.pack(endian + 'I', 8)

    num_entries = len(entries)
    ifd_header = struct.pack(endian + 'H', num_entries)

    # Out-of-line data starts after: header(8) + ifd_count(2) + entries(12*n) + next_ifd(4)
    data_offset = 8 + 2 + 12 * num_entries + 4
    entry_bytes = b''
    data_bytes = b''

    for tag_id, type_id, count, value in entries:
        entry_bytes += struct.pack(endian + 'HHI', tag_id, type_id, count)
        if isinstance(value, bytes):
            entry_bytes += struct.pack(endian + 'I', data_offset + len(data_bytes))
            data_bytes += value
        else:
            entry_bytes += struct.pack(endian + 'I', value)

    next_ifd = struct.pack(endian + 'I', 0)

    result = header + ifd_header + entry_bytes + next_ifd + data_bytes
    if extra_data:
        result += extra_data
    return result


def build_tiff_with_sub_ifd(main_entries, sub_ifd_entries, pointer_tag=34665, endian='<'):
    """Build a TIFF where IFD0 has a LONG pointer tag to an Exif sub-IFD.

    Args:
        main_entries: (tag_id, type_id, count, value_or_bytes) for IFD0.
            The pointer tag is added automatically.
        sub_ifd_entries: (tag_id, type_id, count, value_or_bytes) for the sub-IFD.
        pointer_tag: Tag that carries the sub-IFD offset.
        endian: '<' or '>'.
    """
    bo = b'II' if endian == '<' else b'MM'

    num_main = len(main_entries) + 1
    main_ool_start = 8 + 2 + 12 * num_main + 4
    main_ool_size = sum(len(v) for _, _, _, v in main_entries if isinstance(v, bytes))
    sub_ifd_offset = main_ool_start + main_ool_size
    sub_ool_start = sub_ifd_offset + 2 + 12 * len(sub_ifd_entries) + 4

    def pack_ifd(entries, ool_start):
        ifd = struct.pack(endian + 'H', len(entries))
        data = b''
        for tag_id, type_id, count, value in entries:
            ifd += struct.pack(endian + 'HHI', tag_id, type_id, count)
            if isinstance(value, bytes):
                ifd += struct.pack(endian + 'I', ool_start + len(data))
                data += value
            else:
                ifd += struct.pack(endian + 'I', value)
        return ifd + struct.pack(endian + 'I', 0) + data

    result = bo + struct.pack(endian + 'H', 42) + struct.pack(endian + 'I', 8)
    result += pack_ifd(list(main_entries) + [(pointer_tag, 4, 1, sub_ifd_offset)],
                       main_ool_start)
    result += pack_ifd(sub_ifd_entries, sub_ool_start)
    return result


def jpeg_segment(marker, payload):
    """A JPEG marker segment: FF <marker> <big-endian length> <payload>."""
    return bytes([0xFF, marker]) + struct.pack('>H', len(payload) + 2) + payload


def build_jpeg(tiff=None, before=(), identifier=b'Exif\x00\x00', with_scan=True):
    """Build a JPEG-shaped buffer with an optional Exif APP1 segment.

    Args:
        tiff: TIFF bytes to place after the Exif identifier, or None for
            no APP1 segment.
        before: (marker, payload) segments written before APP1.
        identifier: APP1 identifier (change it to simulate XMP etc.).
        with_scan: Append a start-of-scan segment, entropy data and EOI.
    """
    data = b'\xFF\xD8'
    for marker, payload in before:
        data += jpeg_segment(marker, payload)
    if tiff is not None:
        data += jpeg_segment(0xE1, identifier + tiff)
    if with_scan:
        data += jpeg_segment(0xDA, b'\x03\x01\x00\x02\x11\x03')
        data += b'\x12\x34' * 8 + b'\xFF\xD9'
    return data


def date_entry(tag_id, value):
    """ASCII date entry for build_tiff."""
    return (tag_id, 2, len(value), value)


def make_pillow_jpeg(tiff=None, size=(64, 48), color=(200, 120, 40)):
    """Encode a real JPEG with Pillow, optionally carrying an Exif TIFF block."""
    img = Image.new('RGB', size, color)
    out = io.BytesIO()
    if tiff is not None:
        img.save(out, format='JPEG', quality=95, exif=b'Exif\x00\x00' + tiff)
    else:
        img.save(out, format='JPEG', quality=95)
    return out.getvalue()


# ---------------------------------------------------------------------------
# Buffers
# ---------------------------------------------------------------------------

@pytest.fixture
def exif_tiff():
    """TIFF block with DateTime in IFD0 and DateTimeOriginal in the Exif sub-IFD."""
    return build_tiff_with_sub_ifd(
        [(256, 3, 1, 64), date_entry(0x0132, DATE_MODIFIED)],
        [date_entry(0x9003, DATE_ORIGINAL), date_entry(0x9004, DATE_DIGITIZED)],
    )


@pytest.fixture
def jpeg_buffer(exif_tiff):
    return build_jpeg(exif_tiff, before=[(0xE0, b'JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00')])


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

@pytest.fixture
def photo_dir(tmp_path, exif_tiff):
    """Source tree with dated JPEG, NEF, CR2 files, one undated file and a video."""
    src = tmp_path / 'source'
    (src / 'trip').mkdir(parents=True)

    (src / 'IMG_0001.jpg').write_bytes(make_pillow_jpeg(exif_tiff))
    nef = build_tiff([date_entry(0x9003, b'2022:12:24 18:00:00\x00')])
    (src / 'trip' / 'DSC_0002.NEF').write_bytes(nef)
    cr2 = b'\x00' * 8 + build_tiff([date_entry(0x0132, b'2021:07:04 12:00:00\x00')])
    (src / 'trip' / 'IMG_0003.cr2').write_bytes(cr2)
    (src / 'undated.jpg').write_bytes(make_pillow_jpeg())
    (src / 'clip.mp4').write_bytes(b'\x00\x00\x00\x18ftypmp42 2020:01:01 00:00:00')
    (src / 'notes.txt').write_text('2020:01:01 00:00:00')
    return src


@pytest.fixture
def dest_dir(tmp_path):
    dest = tmp_path / 'dest'
    dest.mkdir()
    return dest
