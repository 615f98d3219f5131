"""Extractor configuration -- RAW header offset tables and scan limits.

Adding a vendor RAW format is a data change: give its extension a list of
candidate TIFF header offsets, either here or in a JSON file.
"""

import json
from dataclasses import dataclass, field
from typing import Dict, Tuple

# Observed per vendor; tried in order
RAW_HEADER_OFFSETS: Dict[str, Tuple[int, ...]] = {
    '.cr2': (0, 8, 16),     # Canon
    '.arw': (0, 4, 8, 12),  # Sony
    '.nef': (0, 4, 8),      # Nikon
}
DEFAULT_HEADER_OFFSETS: Tuple[int, ...] = (0, 4, 8)

# Fallback string scan: stop after 1 MiB
DEFAULT_SCAN_LIMIT = 1024 * 1024
DEFAULT_CHUNK_SIZE = 4096

# Years outside this range are coincidental byte patterns, not dates
MIN_PLAUSIBLE_YEAR = 1990
MAX_PLAUSIBLE_YEAR = 2100


def normalize_extension(ext: str) -> str:
    """Lower-case an extension and make sure it has its leading dot."""
    ext = (ext or '').strip().lower()
    if ext and not ext.startswith('.'):
        ext = '.' + ext
    return ext


@dataclass
class ExtractorConfig:
    """Tunable tables and limits for capture-date extraction."""

    raw_offsets: Dict[str, Tuple[int, ...]] = field(default_factory=dict)
    default_offsets: Tuple[int, ...] = DEFAULT_HEADER_OFFSETS
    scan_limit: int = DEFAULT_SCAN_LIMIT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    min_year: int = MIN_PLAUSIBLE_YEAR
    max_year: int = MAX_PLAUSIBLE_YEAR

    @classmethod
    def default(cls) -> 'ExtractorConfig':
        """Return the built-in configuration."""
        return cls(raw_offsets=dict(RAW_HEADER_OFFSETS))

    @classmethod
    def from_json(cls, path) -> 'ExtractorConfig':
        """Load overrides from a JSON file and merge them with the defaults.

        JSON format::

            {
              "raw_offsets": {".orf": [0, 8], ".cr2": [0, 8, 16, 24]},
              "default_offsets": [0, 4, 8],
              "scan_limit": 2097152,
              "min_year": 1990,
              "max_year": 2100
            }

        All keys are optional. A ``raw_offsets`` entry replaces the built-in
        list for that extension; other extensions keep their defaults.
        """
        with open(str(path), 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f'{path}: expected a JSON object')

        config = cls.default()

        raw_offsets = data.get('raw_offsets', {})
        if not isinstance(raw_offsets, dict):
            raise ValueError(f'raw_offsets must be an object, got {raw_offsets!r}')
        for ext, offsets in raw_offsets.items():
            config.raw_offsets[normalize_extension(ext)] = _offset_tuple(offsets, ext)
        if 'default_offsets' in data:
            config.default_offsets = _offset_tuple(data['default_offsets'], 'default_offsets')
        for key in ('scan_limit', 'chunk_size', 'min_year', 'max_year'):
            if key in data:
                setattr(config, key, _integer(data[key], key))

        if config.scan_limit < 0:
            raise ValueError('scan_limit must not be negative')
        if config.chunk_size < 1:
            raise ValueError('chunk_size must be positive')
        if config.min_year > config.max_year:
            raise ValueError('min_year must not exceed max_year')
        return config

    def offsets_for(self, ext: str) -> Tuple[int, ...]:
        """Candidate TIFF header offsets for an extension."""
        return self.raw_offsets.get(normalize_extension(ext), self.default_offsets)

    def is_plausible_year(self, year: int) -> bool:
        return self.min_year <= year <= self.max_year


def _integer(value, label) -> int:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f'{label} must be an integer, got {value!r}')
    return value


def _offset_tuple(values, label) -> Tuple[int, ...]:
    if not isinstance(values, list):
        raise ValueError(f'offsets for {label} must be a list, got {values!r}')
    offsets = tuple(_integer(v, label) for v in values)
    if any(v < 0 for v in offsets):
        raise ValueError(f'negative header offset in {label}: {list(offsets)}')
    return offsets
