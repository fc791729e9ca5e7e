"""
Provides logging helpers and small numeric utilities for model outputs.
"""

import logging
import os
from datetime import datetime
from typing import Optional

import numpy as np


def softmax(values: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Numerically stable softmax over a flat vector.

    The row maximum is subtracted before exponentiating so large logits do
    not overflow. The result sums to 1 and keeps the position of the
    maximum element.

    Args:
        values: Raw output vector (any shape, treated as flat).
        out: Optional array to write the result into. Passing ``values``
            itself applies the transform in place.

    Returns:
        The normalized distribution (``out`` when given).

    Example:
        >>> logits = np.array([1.0, 2.0, 3.0], dtype=np.float32)
        >>> softmax(logits, out=logits)  # in place
    """
    values = np.asarray(values)
    if values.size == 0:
        raise ValueError("softmax of an empty vector is undefined")

    shifted = np.exp(values - values.max())
    result = shifted / shifted.sum()

    if out is None:
        return result
    np.copyto(out, result.astype(out.dtype, copy=False))
    return out


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_file_path: Optional[str] = None,
    enable_console: bool = True,
    enabled: bool = False,
) -> logging.Logger:
    """
    Setup logging configuration for applications using this library.

    This function configures only the onnxmodel logger, not the root logger,
    to avoid interfering with other libraries' logging.
    """

    package_logger = logging.getLogger("onnxmodel")

    if not enabled:
        package_logger.disabled = True
        return package_logger

    package_logger.disabled = False
    package_logger.setLevel(getattr(logging, log_level.upper()))

    # Clear existing handlers to avoid duplicates
    package_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    if log_to_file:
        if log_file_path is None:
            os.makedirs("logs", exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file_path = f"logs/onnxmodel_{timestamp}.log"

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.propagate = False

    package_logger.info(f"onnxmodel logging initialized - Level: {log_level}")
    if log_to_file:
        package_logger.info(f"Log file: {log_file_path}")

    return package_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger for a specific module within the library.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        Logger instance for the specified module

    Example:
        >>> from onnxmodel.utils import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("Binding inputs...")  # Only shows if user enabled DEBUG
    """
    if name is None:
        name = __name__

    return logging.getLogger(name)


def disable_logging(logger_name: Optional[str] = None) -> None:
    """Disable logging for the whole package or a specific logger."""
    if logger_name is None:
        logger_name = "onnxmodel"

    logging.getLogger(logger_name).disabled = True


def enable_logging(logger_name: Optional[str] = None, level: str = "INFO") -> None:
    """
    Enable logging for this library or a specific logger.

    Args:
        logger_name: Specific logger to enable. If None, enables the entire
                    onnxmodel package logging.
        level: Logging level to set
    """
    if logger_name is None:
        logger_name = "onnxmodel"

    logger_obj = logging.getLogger(logger_name)
    logger_obj.disabled = False
    logger_obj.setLevel(getattr(logging, level.upper()))
