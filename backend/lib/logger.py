"""
Logging Utility for the Backend

Readable console logging for the API and the chat socket:
- Colour-coded levels (only when attached to a terminal)
- Icons per logger area (socket, gateway, store, ...)
- Key/value payload rendering for session and event data
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional


class Colors:
    """ANSI colour codes."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    DEBUG = '\033[36m'      # Cyan
    INFO = '\033[32m'       # Green
    WARNING = '\033[33m'    # Yellow
    ERROR = '\033[31m'      # Red
    CRITICAL = '\033[35m'   # Magenta

    TIMESTAMP = '\033[90m'  # Dark Gray


LEVEL_COLORS = {
    'DEBUG': Colors.DEBUG,
    'INFO': Colors.INFO,
    'WARNING': Colors.WARNING,
    'ERROR': Colors.ERROR,
    'CRITICAL': Colors.CRITICAL,
}


class ColoredFormatter(logging.Formatter):
    """Formatter adding time, icon, level colour and logger name."""

    LEVEL_ICONS = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️',
        'WARNING': '⚠️',
        'ERROR': '❌',
        'CRITICAL': '🚨',
    }

    # Keyed by the last component of the logger name
    AREA_ICONS = {
        'main': '🚀',
        'socket': '🔌',
        'session_engine': '💬',
        'assessment_session': '🎯',
        'wellness_session': '🌱',
        'llm_gateway': '🤖',
        'record_store': '💾',
        'pathways': '🧭',
        'auth': '🔐',
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        area = record.name.split('.')[-1]
        icon = self.AREA_ICONS.get(area, self.LEVEL_ICONS.get(record.levelname, '•'))
        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S.%f')[:-3]

        if self.use_colors:
            level = f"{LEVEL_COLORS.get(record.levelname, Colors.RESET)}{record.levelname:8s}{Colors.RESET}"
            stamp = f"{Colors.TIMESTAMP}[{timestamp}]{Colors.RESET}"
            name = f"{Colors.BOLD}{record.name}{Colors.RESET}"
        else:
            level = f"{record.levelname:8s}"
            stamp = f"[{timestamp}]"
            name = record.name

        formatted = f"{stamp} {icon} {level} {name} | {record.getMessage()}"
        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"
        return formatted


class StructuredLogger:
    """Logger wrapper that renders an optional data dict under each message."""

    def __init__(self, name: str, logger: Optional[logging.Logger] = None):
        self.name = name
        self.logger = logger or logging.getLogger(name)

    @staticmethod
    def _format_data(data: Dict[str, Any]) -> str:
        lines = []
        for key, value in data.items():
            if isinstance(value, str) and len(value) > 120:
                value = value[:120] + "..."
            lines.append(f"    {key}: {value}")
        return "\n".join(lines)

    def _with_data(self, message: str, data: Optional[Dict[str, Any]]) -> str:
        return f"{message}\n{self._format_data(data)}" if data else message

    def section(self, title: str, data: Optional[Dict[str, Any]] = None):
        """Log a banner line, used around startup/shutdown."""
        separator = "=" * 60
        self.logger.info(self._with_data(f"{separator}\n📋 {title.upper()}\n{separator}", data))

    def info(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.info(self._with_data(message, data))

    def warning(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.warning(self._with_data(message, data))

    def error(self, message: str, error: Optional[Exception] = None, data: Optional[Dict[str, Any]] = None):
        """Log an error with the exception type and traceback attached."""
        error_info = f" Error: {type(error).__name__}: {error}" if error else ""
        self.logger.error(self._with_data(f"{message}{error_info}", data), exc_info=error)

    def success(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.info(self._with_data(f"✅ {message}", data))

    def event(self, direction: str, name: str, connection_id: str, data: Optional[Dict[str, Any]] = None):
        """Log one socket frame. `direction` is "in" or "out"."""
        arrow = "📥" if direction == "in" else "📤"
        self.logger.info(self._with_data(f"{arrow} {name} [{connection_id[:8]}]", data))


def setup_logging(level: int = logging.INFO, use_colors: bool = True):
    """Replace root handlers with one coloured stdout handler."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors))

    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Suppress noisy loggers
    for noisy in ('asyncio', 'httpx', 'httpcore', 'openai', 'hpack', 'websockets'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, logging.getLogger(name))
