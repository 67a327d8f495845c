import logging
import sys

_configured = False


def setup_logger(log_level: str = "INFO", use_stdout: bool = False) -> None:
    global _configured
    if _configured:
        return
    _configured = True

    logger = logging.getLogger()
    logger.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout if use_stdout else sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    logger.addHandler(stream_handler)

    # aiohttp access lines are noisy at INFO; keep them for DEBUG runs.
    if logging.getLevelName(log_level) > logging.DEBUG:
        logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
