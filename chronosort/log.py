"""Terminal colors and log file lines for organize runs.

Every organize outcome (a ``ProcessResult.action``, or ``error``) has one
terminal color and one log level, so the progress line, the summary and
the log file agree on how serious it is. Colors are dropped when stdout
is not a terminal; log file lines are always plain text.
"""

import sys
from datetime import datetime
from pathlib import Path

_RESET = '\033[0m'
_HEADER = '\033[1;36m'
_NOTE = '\033[2m'
_DATE = '\033[1;37m'

# outcome -> (terminal color, log level)
OUTCOME_STYLES = {
    'copied': ('\033[32m', 'INFO'),
    'moved': ('\033[34m', 'INFO'),
    'compressed': ('\033[35m', 'INFO'),
    'dry_run': ('\033[36m', 'INFO'),
    'skipped': ('\033[33m', 'WARN'),
    'no_date': ('\033[33m', 'WARN'),
    'error': ('\033[1;31m', 'ERROR'),
}

# Shown on the progress line only with --verbose or --dry-run
ROUTINE_OUTCOMES = frozenset({'copied', 'moved', 'compressed', 'dry_run'})


def _stdout_is_terminal() -> bool:
    isatty = getattr(sys.stdout, 'isatty', None)
    return bool(isatty and isatty())


_use_color = _stdout_is_terminal()


def set_color_enabled(enabled: bool):
    """Force terminal colors on or off."""
    global _use_color
    _use_color = enabled


def _paint(code: str, text: str) -> str:
    return f'{code}{text}{_RESET}' if _use_color else text


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

def outcome_of(result) -> str:
    """Outcome key of a ProcessResult; an error outranks the action."""
    return 'error' if result.error else result.action


def describe(result) -> str:
    """Plain one-line status for a ProcessResult."""
    outcome = outcome_of(result)
    if outcome == 'error':
        return f'ERROR: {result.error}'
    if outcome == 'no_date':
        return 'no capture date, left in place'
    if outcome == 'skipped':
        return f'already exists: {result.dest_path}'
    if outcome == 'dry_run':
        return f'would go to {result.dest_path}'
    return f'{outcome} -> {result.dest_path}'


def cli_outcome(outcome: str, text: str) -> str:
    """Color text the way the given outcome is shown."""
    return _paint(OUTCOME_STYLES[outcome][0], text)


def log_outcome(outcome: str, text: str) -> str:
    """Log file line at the outcome's level."""
    return log_line(text, OUTCOME_STYLES[outcome][1])


# ---------------------------------------------------------------------------
# Other terminal text
# ---------------------------------------------------------------------------

def cli_header(text: str) -> str:
    return _paint(_HEADER, text)


def cli_note(text: str) -> str:
    """Secondary detail, e.g. why a date could not be read."""
    return _paint(_NOTE, text)


def cli_date(taken) -> str:
    """A capture date for the ``date`` command, or a warning if missing."""
    if taken is None:
        return cli_outcome('no_date', 'no capture date')
    return _paint(_DATE, taken.isoformat())


def cli_separator(width: int = 60) -> str:
    return _paint(_NOTE, '─' * width)


# ---------------------------------------------------------------------------
# Log files
# ---------------------------------------------------------------------------

def log_line(msg: str, level: str = 'INFO') -> str:
    """``[YYYY-MM-DD HH:MM:SS] [LEVEL] msg`` with the message column aligned."""
    stamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    return f'[{stamp}] {"[" + level + "]":<7} {msg}'


def default_log_path(log_dir='logs') -> Path:
    """Timestamped log file path, e.g. ``logs/2024-06-15_10-30-00.log``."""
    name = datetime.now().strftime('%Y-%m-%d_%H-%M-%S') + '.log'
    return Path(log_dir) / name
