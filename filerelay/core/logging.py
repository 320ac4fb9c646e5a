
import logging
import os


def configure_logging(level: str = "INFO", log_file: str | None = None):
    logger = logging.getLogger()
    if logger.hasHandlers():
        return
    logger.setLevel(level.upper())

    fmt = logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        fh = logging.FileHandler(log_file)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # httpx logs every request at INFO; keep that out of the app log
    logging.getLogger("httpx").setLevel(logging.WARNING)
