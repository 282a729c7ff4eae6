"""Simple logger utility."""
import logging
from typing import Optional

logger = logging.getLogger("storefront")
if not logger.handlers:
    h = logging.StreamHandler()
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    h.setFormatter(fmt)
    logger.addHandler(h)
    logger.setLevel(logging.INFO)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if not name or name == "storefront":
        return logger
    if name.startswith("storefront."):
        name = name[len("storefront."):]
    return logger.getChild(name)


def set_level(level: str):
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
