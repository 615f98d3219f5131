"""CLI interface for chronosort -- organize and date subcommands."""

import json
import sys
import time
from pathlib import Path

import click

import chronosort
from chronosort.config import ExtractorConfig
from chronosort.extractor import date_file
from chronosort.log import (
    ROUTINE_OUTCOMES, cli_date, cli_header, cli_note, cli_outcome, cli_separator,
    default_log_path, describe, log_line, log_outcome, outcome_of,
)
from chronosort.organizer import check_writable, collect_media_files, count_files, organize_batch


def _load_config(offsets):
    if offsets is None:
        return ExtractorConfig.default()
    try:
        return ExtractorConfig.from_json(offsets)
    except (OSError, ValueError) as e:
        raise click.BadParameter(str(e), param_hint='--offsets')


def _summary_rows(batch):
    """(label, count, outcome or None) for the end-of-run summary."""
    return [
        ('Total', batch.total_files, None),
        ('Processed', batch.files_processed, None),
        ('Copied', batch.files_copied, 'copied'),
        ('Moved', batch.files_moved, 'moved'),
        ('Compressed', batch.files_compressed, 'compressed'),
        ('Deleted', batch.files_deleted, None),
        ('Skipped', batch.files_skipped, 'skipped'),
        ('No date', batch.files_without_date, 'no_date'),
        ('Errors', batch.files_errored, 'error'),
    ]


@click.group()
@click.version_option(version=chronosort.__version__, prog_name='chronosort')
def main():
    """chronosort -- sort photos into folders by capture date.

    Reads the capture date embedded in JPEG and camera RAW files and
    files them under DEST/YYYY/MM-DD/.
    """
    pass


@main.command()
@click.argument('source', type=click.Path(exists=True, file_okay=False))
@click.argument('dest', type=click.Path(exists=True, file_okay=False))
@click.option('--compression', '-c', type=click.IntRange(0, 100),
              help='Re-encode JPEG files at this quality (0-100).')
@click.option('--delete', 'delete_source', is_flag=True,
              help='Delete source files after they are placed.')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation.')
@click.option('--dry-run', is_flag=True, help='Show where files would go, change nothing.')
@click.option('--workers', '-w', type=click.IntRange(min=1), default=1,
              help='Number of parallel workers (default: 1, sequential).')
@click.option('--offsets', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with extra RAW header offsets.')
@click.option('--log', type=click.Path(dir_okay=False), help='Write log to file.')
@click.option('--enable-log', is_flag=True,
              help='Write a timestamped log file under ./logs/.')
@click.option('--verbose', '-v', is_flag=True, help='Show every file, not just problems.')
def organize(source, dest, compression, delete_source, yes, dry_run, workers,
             offsets, log, enable_log, verbose):
    """Organize photos from SOURCE into DEST by capture date.

    Files whose capture date cannot be read are left where they are.
    """
    config = _load_config(offsets)
    source_path = Path(source)
    dest_path = Path(dest)

    if not dry_run:
        try:
            check_writable(dest_path)
        except OSError as e:
            click.echo(cli_outcome(
                'error', f'Error: destination directory is not writable: {e}'), err=True)
            sys.exit(1)

    if enable_log and not log:
        log_path = default_log_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log = str(log_path)
    log_file = open(log, 'a') if log else None

    def log_msg(msg, plain=None, outcome=None):
        click.echo(msg)
        if log_file:
            text = plain if plain is not None else msg
            line = log_outcome(outcome, text) if outcome else log_line(text)
            log_file.write(line + '\n')
            log_file.flush()

    try:
        total, size = count_files(source_path)
        if total == 0:
            log_msg(f'No files to process in {source_path}')
            return

        click.echo(cli_header(f'chronosort v{chronosort.__version__}'))
        log_msg(f'Source:      {source_path}')
        log_msg(f'Destination: {dest_path}')
        log_msg(f'Compression: {compression if compression is not None else "not applied"}')
        log_msg(f'Delete source files: {"yes" if delete_source else "no"}')
        log_msg(f'Number of files to process: {total} [{size / 1e6:.1f} MB]')

        if not yes and not dry_run:
            if not click.confirm(f'Do you want to proceed with processing {total} files?'):
                log_msg('Operation cancelled.')
                sys.exit(1)

        mode_str = 'DRY RUN' if dry_run else ('move' if delete_source else 'copy')
        workers_str = f', {workers} workers' if workers > 1 else ''
        log_msg(f'Processing {total} file(s) ({mode_str}{workers_str})...\n')

        t0 = time.time()

        def progress(i, count, filepath, result):
            outcome = outcome_of(result)
            if outcome in ROUTINE_OUTCOMES and not (verbose or dry_run):
                return
            elapsed = time.time() - t0
            rate = i / elapsed if elapsed > 0 else 0
            prefix = f'  [{i}/{count}] {rate:.1f}/s | {filepath.name} | '
            status = describe(result)
            log_msg(prefix + cli_outcome(outcome, status), prefix + status, outcome)

        batch = organize_batch(
            source_path, dest_path,
            compression=compression, delete_source=delete_source,
            dry_run=dry_run, config=config,
            progress_callback=progress, workers=workers,
        )

        click.echo(cli_separator())
        log_msg(f'Done in {batch.total_time_seconds:.1f}s')
        for label, value, outcome in _summary_rows(batch):
            line = f'  {label + ":":<12}{value}'
            if outcome and value:
                log_msg(cli_outcome(outcome, line), line)
            else:
                log_msg(line)
    finally:
        if log_file:
            log_file.close()

    if batch.files_errored > 0:
        sys.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--offsets', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with extra RAW header offsets.')
@click.option('--json-out', type=click.Path(), help='Write results as JSON to file.')
@click.option('--verbose', '-v', is_flag=True, help='Show why extraction failed.')
def date(path, offsets, json_out, verbose):
    """Show the capture date of a file, or of every supported file in a directory."""
    config = _load_config(offsets)
    files = collect_media_files(Path(path))

    if not files:
        click.echo(f'No supported files found in {path}')
        return

    found = 0
    results_json = []
    for filepath in files:
        result = date_file(filepath, config)
        click.echo(f'{filepath.name}: {cli_date(result.taken)}')
        if result.found:
            found += 1
        elif verbose:
            click.echo(cli_note(f'    {result.error}'))

        if json_out:
            results_json.append({
                'file': str(filepath),
                'taken': result.taken.isoformat() if result.taken else None,
                'error': result.error,
                'elapsed_ms': round(result.elapsed_ms, 1),
            })

    click.echo(f'\n{found} of {len(files)} file(s) have a capture date')

    if json_out:
        with open(json_out, 'w') as f:
            json.dump(results_json, f, indent=2)
        click.echo(f'Results written to {json_out}')


if __name__ == '__main__':
    main()
