import logging
import os
import glob
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

_INITIALIZED = False

# Attributes every LogRecord has; anything else on a record came from extra={...}.
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime", "taskName"}


class ContextFormatter(logging.Formatter):
    """Appends the record's extra fields as key=value pairs after the message."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if not context:
            return line
        return line + " | " + " ".join(f"{k}={v!r}" for k, v in sorted(context.items()))


class TimestampedRotatingFileHandler(RotatingFileHandler):
    """Size-triggered rotation that renames the old file with a timestamp.

    logs/reporting.log is always the live file; a full file becomes
    logs/reporting_20180901_101500.log. backupCount=0 keeps every rotated file,
    otherwise only the newest N survive.
    """

    def _rotated_name(self) -> str:
        base_path = Path(self.baseFilename)
        suffix = base_path.suffix or ".log"
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        candidate = base_path.with_name(f"{base_path.stem}_{ts}{suffix}")
        n = 1
        while candidate.exists():
            candidate = base_path.with_name(f"{base_path.stem}_{ts}_{n}{suffix}")
            n += 1
        return str(candidate)

    def _prune(self) -> None:
        base_path = Path(self.baseFilename)
        suffix = base_path.suffix or ".log"
        pattern = str(base_path.with_name(f"{base_path.stem}_*{suffix}"))
        rotated = sorted(glob.glob(pattern), key=os.path.getmtime, reverse=True)
        for old in rotated[self.backupCount:]:
            try:
                os.remove(old)
            except OSError:
                pass

    def doRollover(self) -> None:
        if self.stream:
            try:
                self.stream.close()
            finally:
                self.stream = None

        if os.path.exists(self.baseFilename):
            try:
                os.replace(self.baseFilename, self._rotated_name())
            except OSError:
                # rename failed; keep writing to the live file
                pass

        if self.backupCount and self.backupCount > 0:
            self._prune()

        if not self.delay:
            self.stream = self._open()


def init_logging(
    log_level: str = "INFO",
    log_file: str = "logs/reporting.log",
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 0,
) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)
    formatter = ContextFormatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    handlers: list = [
        TimestampedRotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        ),
        logging.StreamHandler(),
    ]
    for h in handlers:
        h.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers)
    _INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"ecom_analytics.{name}")
