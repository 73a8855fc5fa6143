# mobileshop/utils/logging.py
import logging
import sys

from mobileshop.utils.settings import LOG_LEVEL

_ROOT = "mobileshop"
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(LOG_LEVEL.upper())
        # uvicorn/celery configure their own handlers on the root logger
        root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    _configure_root()
    if name != _ROOT and not name.startswith(_ROOT + "."):
        name = f"{_ROOT}.{name}"
    return logging.getLogger(name)
