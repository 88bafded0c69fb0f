"""Image loading and saving, dispatching on file extension."""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from .exceptions import FormatError
from .models import ImageBuffer
from .ppm import atomic_output, read_ppm, write_ppm

logger = logging.getLogger(__name__)

PPM_SUFFIXES = {".ppm", ".pnm"}


def load_image(path: Path | str) -> ImageBuffer:
    """Load an image as RGB.

    Plain-text PPM files go through the P3 decoder, everything else through OpenCV.

    Args:
        path: Image file

    Returns:
        Decoded ImageBuffer.

    Raises:
        FileNotFoundError: If the file does not exist.
        FormatError: If the file cannot be decoded.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Image not found: {path}"
        raise FileNotFoundError(msg)

    if path.suffix.lower() in PPM_SUFFIXES:
        return read_ppm(path)

    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        msg = f"{path}: cannot decode image"
        raise FormatError(msg)

    logger.debug(f"Loaded {path} ({img.shape[1]}x{img.shape[0]}) via OpenCV")
    return ImageBuffer(cv2.cvtColor(img, cv2.COLOR_BGR2RGB))


def save_image(image: ImageBuffer, path: Path | str) -> None:
    """Save an image, replacing the destination atomically.

    Args:
        image: RGB image to save
        path: Destination file; the extension selects the encoder

    Raises:
        FormatError: If OpenCV cannot encode to the requested format.
    """
    path = Path(path)
    if path.suffix.lower() in PPM_SUFFIXES:
        write_ppm(image, path)
        return

    bgr = cv2.cvtColor(np.ascontiguousarray(image.data), cv2.COLOR_RGB2BGR)
    with atomic_output(path) as tmp_path:
        try:
            written = cv2.imwrite(str(tmp_path), bgr)
        except cv2.error:
            written = False
        if not written:
            msg = f"{path}: cannot encode image as {path.suffix or 'unknown format'}"
            raise FormatError(msg)
    logger.debug(f"Saved {path} ({image.width}x{image.height}) via OpenCV")
