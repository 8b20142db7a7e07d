import logging
from pathlib import Path
from typing import Optional, Union

from rich.logging import RichHandler


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[Union[str, Path]] = None):
    """
    Set up logging for the command line tools.
    This function configures the root logger to use RichHandler for
    console output and, if log_file is given, a file handler as well.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []  # Clear existing handlers

    console_handler = RichHandler(
        rich_tracebacks=True,
        show_time=False,
        show_level=True,
        show_path=False,
    )
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        # Detailed formatter for the file only, Rich keeps its own console layout
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
        root_logger.addHandler(file_handler)

    # Silence noisy third-party libraries
    for lib in ["zarr", "numcodecs", "asyncio"]:
        logging.getLogger(lib).setLevel(logging.WARNING)

    return root_logger
