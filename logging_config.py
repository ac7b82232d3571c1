"""Root logger setup: one line per record on stdout."""
import logging
import sys

_LOG_FMT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"
_HANDLER_NAME = "finance-tracker-stdout"


def setup_logging(level: str = "INFO") -> None:
    """Install the stdout handler once; other handlers on the root logger stay."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_LOG_FMT))
    root.addHandler(handler)
