"""Core organize logic -- date lookup, copy/move/compress, and batch processing.

Files land in ``<dest>/<YYYY>/<MM-DD>/<filename>`` by capture date.
Supports both sequential and parallel (thread pool) batch processing.
"""

import io
import logging
import os
import shutil
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from PIL import Image

from chronosort.config import ExtractorConfig
from chronosort.errors import ExtractionError
from chronosort.extractor import SUPPORTED_EXTENSIONS, get_image_datetime
from chronosort.formats import JPEG_EXTENSIONS
from chronosort.models import BatchResult, ProcessResult

logger = logging.getLogger(__name__)

# Default number of parallel workers
DEFAULT_WORKERS = 4

_WRITE_PROBE = 'test_write.tmp'


def collect_media_files(path: Path) -> List[Path]:
    """Collect all supported media files from a path (file or directory)."""
    path = Path(path)
    if path.is_file():
        return [path]

    files = []
    for root, _, filenames in os.walk(path):
        for fname in sorted(filenames):
            if Path(fname).suffix.lower() in SUPPORTED_EXTENSIONS:
                files.append(Path(root) / fname)
    files.sort()
    return files


def count_files(path: Path) -> Tuple[int, int]:
    """Return (number of supported files, their total size in bytes)."""
    files = collect_media_files(path)
    total = sum(f.stat().st_size for f in files)
    logger.info('Found %d file(s) in %s', len(files), path)
    return len(files), total


def destination_for(dest_root: Path, filepath: Path, taken: datetime) -> Path:
    """Target path: ``dest_root/YYYY/MM-DD/<name>``."""
    return (Path(dest_root) / f'{taken.year:04d}'
            / f'{taken.month:02d}-{taken.day:02d}' / Path(filepath).name)


def check_writable(dest_root: Path):
    """Raise OSError if files cannot be created in dest_root."""
    probe = Path(dest_root) / _WRITE_PROBE
    probe.write_bytes(b'test')
    probe.unlink()


def compress_jpeg(buffer: bytes, quality: int) -> bytes:
    """Re-encode a JPEG at the given quality (0-100), keeping its Exif block."""
    with Image.open(io.BytesIO(buffer)) as img:
        exif = img.info.get('exif')
        if img.mode not in ('RGB', 'L', 'CMYK'):
            img = img.convert('RGB')
        out = io.BytesIO()
        if exif:
            img.save(out, format='JPEG', quality=quality, exif=exif)
        else:
            img.save(out, format='JPEG', quality=quality)
    return out.getvalue()


def organize_file(
    filepath: Path,
    dest_root: Path,
    compression: Optional[int] = None,
    delete_source: bool = False,
    dry_run: bool = False,
    config: Optional[ExtractorConfig] = None,
) -> ProcessResult:
    """Place a single file in the date tree.

    Args:
        filepath: Path to the source file.
        dest_root: Root of the date-partitioned destination tree.
        compression: JPEG quality 0-100; JPEGs are re-encoded when set.
        delete_source: Remove the source once the destination is written.
        dry_run: Only work out the destination, don't touch anything.
        config: Extractor configuration (offset tables, scan limits).

    Returns:
        ProcessResult describing what was done. Files without a
        recoverable date are skipped with action "no_date".
    """
    filepath = Path(filepath)
    t0 = time.monotonic()
    result = ProcessResult(source_path=filepath)

    def done(**kwargs) -> ProcessResult:
        for key, value in kwargs.items():
            setattr(result, key, value)
        result.process_time_ms = (time.monotonic() - t0) * 1000
        return result

    try:
        buffer = filepath.read_bytes()
    except OSError as e:
        return done(error=f'Cannot read file: {e}')
    result.file_size = len(buffer)

    try:
        taken = get_image_datetime(buffer, filepath.suffix, config)
    except ExtractionError as e:
        logger.warning('Could not get capture date for %s: %s', filepath, e)
        return done(action='no_date')
    result.taken = taken

    target = destination_for(dest_root, filepath, taken)
    result.dest_path = target

    if target.exists():
        logger.info('Destination already exists, skipping: %s', target)
        return done(action='skipped')

    if dry_run:
        return done(action='dry_run')

    compress = (compression is not None
                and filepath.suffix.lower() in JPEG_EXTENSIONS)
    created = False
    try:
        output = compress_jpeg(buffer, compression) if compress else buffer
        target.parent.mkdir(parents=True, exist_ok=True)
        # Exclusive create so parallel workers never overwrite each other
        with open(target, 'xb') as out:
            created = True
            out.write(output)
        if not compress:
            shutil.copystat(str(filepath), str(target))
    except FileExistsError:
        logger.info('Destination already exists, skipping: %s', target)
        return done(action='skipped')
    except (OSError, ValueError) as e:
        if created:
            # A half-written file would be skipped as "exists" on the next run
            _remove_partial(target)
        return done(error=f'Cannot write {target}: {e}')

    if compress:
        action = 'compressed'
    else:
        action = 'moved' if delete_source else 'copied'

    if delete_source:
        try:
            filepath.unlink()
        except OSError as e:
            return done(action=action, error=f'Failed to delete source file: {e}')
        logger.info('Deleted source file: %s', filepath)
        result.source_deleted = True

    logger.info('%s %s -> %s', action.capitalize(), filepath, target)
    return done(action=action)


def _remove_partial(target: Path):
    try:
        target.unlink()
    except OSError as e:
        logger.error('Could not remove incomplete file %s: %s', target, e)


def organize_batch(
    source: Path,
    dest_root: Path,
    compression: Optional[int] = None,
    delete_source: bool = False,
    dry_run: bool = False,
    config: Optional[ExtractorConfig] = None,
    progress_callback: Optional[Callable] = None,
    workers: int = 1,
) -> BatchResult:
    """Organize a batch of media files.

    Args:
        source: File or directory containing media files.
        dest_root: Root of the destination date tree.
        compression: JPEG quality 0-100, or None to copy JPEGs unchanged.
        delete_source: Remove sources after they are placed.
        dry_run: Resolve destinations only.
        config: Extractor configuration.
        progress_callback: Called with (index, total, filepath, result) after each file.
        workers: Number of parallel workers. 1 = sequential (default).

    Returns:
        BatchResult with summary statistics.
    """
    t0 = time.monotonic()
    config = config or ExtractorConfig.default()

    files = collect_media_files(Path(source))
    batch = BatchResult(total_files=len(files))

    options = dict(dest_root=Path(dest_root), compression=compression,
                   delete_source=delete_source, dry_run=dry_run, config=config)

    if workers > 1 and len(files) > 1:
        results = _batch_parallel(files, options, workers, progress_callback, batch)
    else:
        results = _batch_sequential(files, options, progress_callback, batch)

    batch.results = results
    batch.total_time_seconds = time.monotonic() - t0
    return batch


def _process_one(filepath: Path, options: dict) -> ProcessResult:
    try:
        return organize_file(filepath, **options)
    except Exception as e:
        return ProcessResult(source_path=filepath, error=str(e))


def _batch_sequential(
    files: List[Path],
    options: dict,
    progress_callback: Optional[Callable],
    batch: BatchResult,
) -> List[ProcessResult]:
    """Process files sequentially."""
    results = []
    total = len(files)

    for i, filepath in enumerate(files):
        result = _process_one(filepath, options)
        results.append(result)
        _update_batch_stats(batch, result)

        if progress_callback:
            progress_callback(i + 1, total, filepath, result)

    return results


def _batch_parallel(
    files: List[Path],
    options: dict,
    workers: int,
    progress_callback: Optional[Callable],
    batch: BatchResult,
) -> List[ProcessResult]:
    """Process files in parallel using a thread pool.

    Files are processed concurrently but results are collected in
    submission order for deterministic output.
    """
    total = len(files)
    results = [None] * total
    lock = threading.Lock()
    completed_count = 0

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_process_one, filepath, options): (i, filepath)
            for i, filepath in enumerate(files)
        }

        for future in as_completed(futures):
            index, filepath = futures[future]
            result = future.result()
            results[index] = result

            with lock:
                _update_batch_stats(batch, result)
                completed_count += 1
                if progress_callback:
                    progress_callback(completed_count, total, filepath, result)

    return results


def _update_batch_stats(batch: BatchResult, result: ProcessResult):
    """Update batch statistics from a single result."""
    batch.total_bytes += result.file_size
    if result.source_deleted:
        batch.files_deleted += 1
    if result.error:
        batch.files_errored += 1
    elif result.action == 'no_date':
        batch.files_without_date += 1
    elif result.action == 'skipped':
        batch.files_skipped += 1
    elif result.action in ('copied', 'moved', 'compressed'):
        batch.files_processed += 1
        if result.action == 'copied':
            batch.files_copied += 1
        elif result.action == 'moved':
            batch.files_moved += 1
        else:
            batch.files_compressed += 1
