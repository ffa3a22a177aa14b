"""
# Logging Manager

Central place where application loggers are created. Every module asks for its logger
through `get_logger(prefix=...)`, so log lines from one subsystem share a recognisable
prefix (e.g. `[Blog Routes]`, `[DATABASE]`) and a single handler configuration.

## Usage

```python
from blogsite.managers.logging_manager import get_logger

logger = get_logger(prefix="[Blog Routes]")
logger.info("Created post: %s", blog_id)
```
"""

import logging
import sys
from typing import Dict, Optional

from blogsite.config import settings

ROOT_LOGGER_NAME = "blogsite"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False
_adapters: Dict[str, logging.LoggerAdapter] = {}


class PrefixAdapter(logging.LoggerAdapter):
    """Prepends a fixed subsystem prefix to every message."""

    def process(self, msg, kwargs):
        prefix = self.extra.get("prefix")
        if prefix:
            return f"{prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    _configured = True


def get_logger(name: Optional[str] = None, prefix: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Return a logger for the application, optionally tagged with a prefix.

    Args:
        name: Child logger name under the `blogsite` root. Defaults to the root logger.
        prefix: Text prepended to every message, conventionally in square brackets.

    Returns:
        logging.LoggerAdapter: A cached adapter; repeated calls with the same arguments
        return the same object.
    """
    _configure_root()
    key = f"{name or ''}|{prefix or ''}"
    if key not in _adapters:
        logger_name = f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME
        _adapters[key] = PrefixAdapter(logging.getLogger(logger_name), {"prefix": prefix})
    return _adapters[key]
