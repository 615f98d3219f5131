"""Fallback locator -- raw scan for a date string."""

from datetime import datetime
from typing import BinaryIO

from chronosort.config import ExtractorConfig
from chronosort.formats.base import DateLocator
from chronosort.scanner import scan_for_datetime


class DateStringLocator(DateLocator):
    """Last resort: first plausible ``YYYY:MM:DD HH:MM:SS`` in the data."""

    name = "scan"

    def locate(self, f: BinaryIO, ext: str, config: ExtractorConfig) -> datetime:
        return scan_for_datetime(f, config)
