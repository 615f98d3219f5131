"""chronosort -- Sort photos into a date tree using their embedded capture date."""

__version__ = "1.0.0"

from chronosort.config import ExtractorConfig
from chronosort.errors import (
    ExtractionError,
    InvalidByteOrder,
    InvalidIfdOffset,
    InvalidTiffMarker,
    NoDateTimeFound,
    NoDateTimeInformation,
    NoExifInJpeg,
    NoTiffAtKnownOffsets,
    TruncatedData,
    UnsupportedFormat,
)
from chronosort.models import BatchResult, DateResult, ProcessResult
from chronosort.extractor import (
    SUPPORTED_EXTENSIONS,
    date_file,
    extract_file_datetime,
    get_image_datetime,
)
from chronosort.organizer import organize_batch, organize_file

__all__ = [
    "__version__",
    "ExtractorConfig",
    "ExtractionError",
    "InvalidByteOrder",
    "InvalidTiffMarker",
    "InvalidIfdOffset",
    "TruncatedData",
    "NoExifInJpeg",
    "NoTiffAtKnownOffsets",
    "NoDateTimeFound",
    "NoDateTimeInformation",
    "UnsupportedFormat",
    "DateResult",
    "ProcessResult",
    "BatchResult",
    "SUPPORTED_EXTENSIONS",
    "get_image_datetime",
    "extract_file_datetime",
    "date_file",
    "organize_file",
    "organize_batch",
]
