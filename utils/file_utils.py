"""
File Utilities Module
Image file reads, writes and cleanup used by the comparison step.
"""

import logging
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)

def ensure_directory(directory: str | Path) -> None:
    """Ensure directory exists, create if necessary."""
    Path(directory).mkdir(parents=True, exist_ok=True)

def read_image_bytes(file_path: str | Path) -> bytes:
    """
    Read an image file as raw bytes.

    Raises:
        FileNotFoundError: If file doesn't exist
        OSError: If file can't be read
    """
    with open(file_path, 'rb') as f:
        data = f.read()
    logger.debug(f"Read {len(data)} bytes from {file_path}")
    return data

def write_png(image: Image.Image, file_path: str | Path) -> Path:
    """Save a Pillow image as PNG, creating the parent directory."""
    path = Path(file_path)
    ensure_directory(path.parent)
    image.save(path, format='PNG')
    logger.debug(f"Wrote PNG {path}")
    return path

def remove_file(file_path: str | Path) -> bool:
    """
    Delete a transient file.

    Failures are logged and reported through the return value only.
    """
    try:
        Path(file_path).unlink()
        return True
    except OSError as e:
        logger.warning(f"Could not remove {file_path}: {e}")
        return False
