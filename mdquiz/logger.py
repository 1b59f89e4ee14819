import logging
from typing import List, Optional


def setup_logger(level: str = "INFO", log_file: Optional[str] = None):
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='[%(asctime)s] [%(levelname)s] %(message)s',
        handlers=handlers,
        force=True,
    )
