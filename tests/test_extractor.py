"""End-to-end tests for the extraction orchestrator."""

import struct
from datetime import datetime

import pytest

from chronosort.errors import (
    ExtractionError, NoDateTimeInformation, NoExifInJpeg, UnsupportedFormat,
)
from chronosort.extractor import (
    SUPPORTED_EXTENSIONS, date_file, extract_file_datetime, get_image_datetime,
)
from chronosort.tiff import TAG_DATETIME, TAG_DATETIME_ORIGINAL
from tests.conftest import (
    DATE_ORIGINAL, build_jpeg, build_tiff, date_entry, make_pillow_jpeg,
)

ORIGINAL = datetime(2023, 6, 15, 14, 30, 45)


class TestJPEG:
    def test_literal_scenario(self):
        tiff = build_tiff([date_entry(TAG_DATETIME_ORIGINAL, b'2023:06:15 14:30:45\x00')])
        data = (bytes.fromhex('FFD8FFE1') + struct.pack('>H', 2 + 6 + len(tiff))
                + bytes.fromhex('457869660000') + tiff)
        assert get_image_datetime(data, '.jpg') == datetime(2023, 6, 15, 14, 30, 45)

    def test_prefers_original_in_sub_ifd(self, jpeg_buffer):
        assert get_image_datetime(jpeg_buffer, '.jpeg') == ORIGINAL

    def test_uppercase_extension(self, jpeg_buffer):
        assert get_image_datetime(jpeg_buffer, '.JPG') == ORIGINAL

    def test_pillow_encoded(self, exif_tiff):
        assert get_image_datetime(make_pillow_jpeg(exif_tiff), '.jpg') == ORIGINAL

    def test_jpeg_without_exif_fails(self):
        with pytest.raises(NoDateTimeInformation) as exc:
            get_image_datetime(make_pillow_jpeg(), '.jpg')
        names = [name for name, _ in exc.value.failures]
        assert names == ['jpeg', 'tiff', 'offsets', 'scan']
        assert isinstance(exc.value.failures[0][1], NoExifInJpeg)


class TestRAW:
    def test_nef_plain_tiff(self):
        tiff = build_tiff([date_entry(TAG_DATETIME_ORIGINAL, DATE_ORIGINAL)], endian='>')
        assert get_image_datetime(tiff, '.nef') == ORIGINAL

    def test_offset_raw(self):
        data = b'\xAB' * 8 + build_tiff([date_entry(TAG_DATETIME, b'2021:07:04 12:00:00\x00')])
        assert get_image_datetime(data, '.cr2') == datetime(2021, 7, 4, 12, 0, 0)

    def test_falls_back_to_string_scan(self):
        data = b'\x00\x00\x00\x1cftypcrx ' + b'\x00' * 40 + b'2022:02:22 22:22:22\x00' + b'\x01' * 64
        assert get_image_datetime(data, '.cr3') == datetime(2022, 2, 22, 22, 22, 22)

    def test_jpeg_locator_not_used_for_raw(self, jpeg_buffer):
        # Still found, but by the string scan rather than the JPEG walker
        assert get_image_datetime(jpeg_buffer, '.heic') == datetime(2024, 1, 2, 9, 0, 0)

    def test_nothing_anywhere(self):
        with pytest.raises(NoDateTimeInformation) as exc:
            get_image_datetime(b'\x00' * 4096, '.dng')
        assert [name for name, _ in exc.value.failures] == ['tiff', 'offsets', 'scan']


class TestUnsupported:
    @pytest.mark.parametrize('ext', ['.mp4', '.MOV', '.qt', 'mp4'])
    def test_video_always_fails(self, ext, jpeg_buffer):
        with pytest.raises(UnsupportedFormat):
            get_image_datetime(jpeg_buffer, ext)

    def test_video_is_terminal_error(self):
        data = build_tiff([date_entry(TAG_DATETIME_ORIGINAL, DATE_ORIGINAL)])
        with pytest.raises(NoDateTimeInformation):
            get_image_datetime(data, '.mp4')

    def test_empty_buffer(self):
        with pytest.raises(ExtractionError):
            get_image_datetime(b'', '.jpg')


class TestDeterminism:
    def test_idempotent(self, jpeg_buffer):
        assert get_image_datetime(jpeg_buffer, '.jpg') == get_image_datetime(jpeg_buffer, '.jpg')

    def test_failure_idempotent(self):
        for _ in range(2):
            with pytest.raises(NoDateTimeInformation):
                get_image_datetime(b'nothing here', '.arw')

    def test_buffer_not_modified(self, jpeg_buffer):
        copy = bytes(jpeg_buffer)
        get_image_datetime(jpeg_buffer, '.jpg')
        assert jpeg_buffer == copy

    def test_supported_extensions(self):
        assert {'.jpg', '.jpeg', '.nef', '.cr2', '.cr3', '.arw', '.dng', '.raw',
                '.heic', '.heif', '.raf', '.rw2'} == SUPPORTED_EXTENSIONS


class TestFiles:
    def test_extract_file_datetime(self, tmp_path, jpeg_buffer):
        f = tmp_path / 'IMG_1.JPG'
        f.write_bytes(jpeg_buffer)
        assert extract_file_datetime(f) == ORIGINAL

    def test_date_file_success(self, tmp_path, jpeg_buffer):
        f = tmp_path / 'IMG_1.jpg'
        f.write_bytes(jpeg_buffer)
        result = date_file(f)
        assert result.found
        assert result.taken == ORIGINAL
        assert result.error is None

    def test_date_file_failure(self, tmp_path):
        f = tmp_path / 'empty.nef'
        f.write_bytes(b'')
        result = date_file(f)
        assert not result.found
        assert 'NoDateTimeInformation' in result.error

    def test_date_file_missing(self, tmp_path):
        result = date_file(tmp_path / 'gone.jpg')
        assert not result.found
        assert result.error
