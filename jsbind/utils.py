"""Utility functions for loading signature files.

This module provides functions for reading signature text from files and
standard input with proper error handling.
"""

import sys
from pathlib import Path
from typing import TextIO

from .logging_config import get_logger

logger = get_logger(__name__)

SIGNATURE_SUFFIXES = {".mli", ".sig"}


class SignatureLoaderError(Exception):
    """Custom exception for signature loading errors."""

    pass


def load_signature_from_file(file_path: str | Path) -> tuple[str, str]:
    """Load signature text from a local file.

    Args:
        file_path: Path to the signature file.

    Returns:
        Tuple of (source name for diagnostics, signature text).

    Raises:
        SignatureLoaderError: If the file is missing or cannot be decoded.
    """
    file_path = Path(file_path)
    logger.debug("Attempting to load signature from file: %s", file_path)

    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        raise SignatureLoaderError(f"File not found: {file_path}")

    if file_path.suffix.lower() not in SIGNATURE_SUFFIXES:
        # Still read it; any text may be a valid signature
        logger.warning("File does not have a signature extension: %s", file_path)

    try:
        text = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        logger.error("File %s is not valid UTF-8: %s", file_path, e)
        raise SignatureLoaderError(f"File {file_path} is not valid UTF-8: {e}") from e
    except OSError as e:
        logger.error("Error reading file %s: %s", file_path, e, exc_info=True)
        raise SignatureLoaderError(f"Error reading file {file_path}: {e}") from e

    logger.info("Loaded signature from %s (%d characters)", file_path, len(text))
    return str(file_path), text


def load_signature_from_stream(stream: TextIO, name: str = "<stdin>") -> tuple[str, str]:
    """Read signature text from an open text stream."""
    try:
        text = stream.read()
    except OSError as e:
        raise SignatureLoaderError(f"Error reading {name}: {e}") from e
    return name, text


def load_signature(source: str | Path) -> tuple[str, str]:
    """Load a signature from a file path, or from stdin when ``source`` is ``-``.

    Returns:
        Tuple of (source name, signature text).
    """
    if str(source) == "-":
        return load_signature_from_stream(sys.stdin)
    return load_signature_from_file(source)
