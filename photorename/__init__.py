from .__version__ import __version__

import datetime
import logging
from collections import defaultdict
from colorama import Fore, Style, init





# ========================================
# logs with color
# ========================================
class ColoredFormatter(logging.Formatter):
    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.MAGENTA
    }

    def format(self, record):
        if not hasattr(record, 'target'):
            record.target = '-'  # Default value if 'target' is not provided
        log_color = self.COLORS.get(record.levelname, '')
        log_format = (
            f"{log_color}[%(levelname)s]\t%(target)s:\t%(message)s{Style.RESET_ALL}"
        )
        formatter = logging.Formatter(log_format)
        return formatter.format(record)


def configure_logging(verbose: bool = False) -> None:
    """Install the colored handler on the root logger (DEBUG when verbose)."""
    init(autoreset=True)
    handler = logging.StreamHandler()
    handler.setFormatter(ColoredFormatter())
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, handlers=[handler], force=True)




# ========================================
# definitions
# ========================================
PHOTO_EXTENSIONS = frozenset({'.jpg', '.jpeg', '.cr2', '.cr3'})
SIDECAR_EXTENSION = '.xmp'
DUPLICATE_SUFFIX = '-'
DATETIME_FORMAT = '%Y-%m-%d_%H-%M-%S'


def is_photo_file(filename: str) -> bool:
    """True when the extension (any case) is a recognized photo format."""
    dot = filename.rfind('.')
    if dot < 0:
        return False
    return filename[dot:].lower() in PHOTO_EXTENSIONS


class RenameAbort(RuntimeError):
    """Fatal condition: the whole run stops, nothing is rolled back."""





# ========================================
# summary helpers (end-of-run reporting)
# ========================================
def format_duration(seconds: float) -> str:
    """Return HH:MM:SS for a duration in seconds."""
    total_seconds = int(round(seconds or 0))
    h = total_seconds // 3600
    m = (total_seconds % 3600) // 60
    s = total_seconds % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


class RunSummary:
    """
    Counters and settings collected during one run, logged at the end.

    Usage:
        s = RunSummary()
        s.inc('renamed')
        s.set('dry_run', True)
        s.emit_lines([f"Renamed {s['renamed']} files in {s.duration_hms}."])
    """
    def __init__(self):
        self._t0 = datetime.datetime.now()
        self._t1 = None
        self.counters = defaultdict(int)
        self.metrics = {}

    @property
    def duration_s(self) -> float:
        end = self._t1 or datetime.datetime.now()
        return (end - self._t0).total_seconds()

    @property
    def duration_hms(self) -> str:
        return format_duration(self.duration_s)

    def stop(self):
        self._t1 = datetime.datetime.now()

    def inc(self, key: str, n: int = 1):
        self.counters[key] += n

    def set(self, key: str, value):
        self.metrics[key] = value

    def __getitem__(self, key: str):
        if key in self.counters:
            return self.counters[key]
        return self.metrics.get(key, 0)

    def emit_lines(self, lines, level=logging.INFO):
        """Log the human lines, then the raw counters at DEBUG."""
        self.stop()
        for line in lines:
            logging.log(level, line, extra={'target': 'SUMMARY'})
        payload = {
            'duration_s': int(round(self.duration_s)),
            'counters': dict(self.counters),
            'metrics': self.metrics,
        }
        logging.debug("%s", payload, extra={'target': 'SUMMARY'})
