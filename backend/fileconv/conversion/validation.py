"""Checks shared by every converter before a backend is touched."""
import logging
import os
import time
from pathlib import Path
from typing import Iterable, Optional

from fileconv.conversion.formats import ConversionCategory, FileType
from fileconv.conversion.models import OPTIONS_BY_CATEGORY, ConversionRequest

logger = logging.getLogger("fileconv.validation")


class Timer:
    """Wall-clock timer started at construction."""

    def __init__(self):
        self._start = time.perf_counter()

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self._start


def check_request(
    request: Optional[ConversionRequest],
    supported: Iterable[FileType],
    category: ConversionCategory,
) -> Optional[tuple[str, Optional[BaseException]]]:
    """
    Validate a request in the fixed order: request present, paths present,
    target supported, options match category, input exists.
    Returns (message, error) for the first failed check or None when the request is usable.
    """
    if request is None:
        return "Request cannot be empty", ValueError("request cannot be None")
    if not request.input_path or not request.output_path:
        return "Invalid input or output path", None
    if request.target_format not in supported:
        return f"Unsupported target format for {category.value} conversion", None
    options_type = OPTIONS_BY_CATEGORY[category]
    if request.options is not None and not isinstance(request.options, options_type):
        return (
            f"Invalid options for {category.value} conversion",
            TypeError(f"expected {options_type.__name__}, got {type(request.options).__name__}"),
        )
    if not os.path.isfile(request.input_path):
        return f"Input file does not exist: {request.input_path}", None
    return None


def ensure_output_dir(output_path: str) -> None:
    """Create the parent directory of output_path; an existing directory is not an error."""
    parent = Path(output_path).parent
    if str(parent) in ("", "."):
        return
    parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Output directory ready: %s", parent)
