"""
Root logging setup.

Components only ever call logging.getLogger(__name__); the handler and
formatter are installed once here by whichever entry point owns the process.
"""
import logging
from typing import Optional

from pythonjsonlogger import jsonlogger

from recovery_lab.config import Settings, settings as default_settings

_HANDLER_NAME = "recovery_lab"

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(config: Optional[Settings] = None) -> logging.Logger:
    """
    Install the Recovery Lab handler on the root logger.

    Calling this twice replaces the previous handler instead of stacking a
    second one.

    Args:
        config: Settings to read log level/format from (defaults to global)

    Returns:
        The configured root logger
    """
    config = config or default_settings
    root = logging.getLogger()

    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if config.log_json:
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            fmt=LOG_FORMAT,
            datefmt=DATE_FORMAT,
        )
    else:
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handler.setFormatter(formatter)

    root.addHandler(handler)
    root.setLevel(getattr(logging, config.log_level))
    return root
