import logging
import sys
from datetime import datetime


class ProgressLogger:
    """
    Logs batch progress at 10% steps with an ETA.

    Used by corpus processing, where one step is one surah.
    """
    def __init__(self, total, desc="Progress", logger=None):
        self.total = total
        self.current = 0
        self.desc = desc
        self.logger = logger or logging.getLogger()
        self.start_time = datetime.now()
        self.last_log_percent = -1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        # A failed batch is left where it stopped
        if exc_type is None:
            self.close()
        return False

    def _eta(self):
        elapsed = (datetime.now() - self.start_time).total_seconds()
        if self.current <= 0 or elapsed <= 0 or self.current >= self.total:
            return None
        seconds = int((self.total - self.current) * elapsed / self.current)
        minutes, seconds = divmod(seconds, 60)
        return f"{minutes}m{seconds:02d}s" if minutes else f"{seconds}s"

    def _message(self, percent, item_desc=None):
        parts = [f"{self.desc}: {self.current}/{self.total} ({percent}%)"]
        if item_desc:
            parts.append(f"- {item_desc}")
        eta = self._eta()
        if eta:
            parts.append(f"[ETA: {eta}]")
        return " ".join(parts)

    def update(self, n=1, item_desc=None):
        """Advance by n items; logs on each 10% step, a described item, or completion."""
        self.current += n
        percent = int((self.current / self.total) * 100) if self.total > 0 else 0

        if percent - self.last_log_percent >= 10 or item_desc or self.current == self.total:
            self.logger.info(self._message(percent, item_desc))
            self.last_log_percent = percent

    def close(self):
        """Mark progress as complete."""
        if self.current < self.total:
            self.current = self.total
            self.update(0)


def setup_logging(log_file=None, level=logging.INFO, debug=False):
    """
    Configure root logging for the nahw command line.

    Args:
        log_file: Optional path of a log file to append to. Console only when None.
        level: Logging level (default: INFO).
        debug: If True, enables DEBUG level with file/line context, which
            also surfaces every rule decision of the detector.
    """
    # Clear existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if debug:
        level = logging.DEBUG
        format_string = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
    else:
        format_string = '%(asctime)s - %(levelname)s - %(message)s'

    handlers = []
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(format_string))
        handlers.append(file_handler)

    # stdout carries command output, so log lines go to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(format_string))
    handlers.append(console_handler)

    root_logger.setLevel(level)
    for handler in handlers:
        root_logger.addHandler(handler)

    logging.info("=" * 80)
    logging.info(f"NEW RUN STARTED - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    if debug:
        logging.info("DEBUG MODE ENABLED - Verbose logging active")
    logging.info("=" * 80)


def log_with_context(message, context=None, level=logging.DEBUG, logger=None):
    """
    Log a message with additional context (segment, rule, reason, ...).

    Args:
        message: Main log message
        context: Dict of contextual information
        level: Log level (default: DEBUG)
        logger: Logger to write to (default: root logger)
    """
    logger = logger or logging.getLogger()
    logger.log(level, message)

    if context and logger.isEnabledFor(logging.DEBUG):
        for key, value in context.items():
            # Truncate long values
            str_value = str(value)
            if len(str_value) > 200:
                str_value = str_value[:200] + "..."
            logger.debug(f"  └─ {key}: {str_value}")
