"""Plain-text PPM (P3) decoding and encoding."""

from __future__ import annotations

import contextlib
import logging
import os
import re
import tempfile
from collections.abc import Iterator
from pathlib import Path

import numpy as np

from .exceptions import ChannelRangeError, FormatError
from .models import ImageBuffer

logger = logging.getLogger(__name__)

MAGIC = "P3"
MAX_COLOR = 255
COMMENT_CHAR = "#"
_HEADER_FIELDS = ("width", "height", "max color value")
_INTEGER_RE = re.compile(r"[0-9]+")


def _tokenize(text: str) -> list[str]:
    """Split PPM text into whitespace-separated tokens, dropping # comments."""
    tokens: list[str] = []
    for line in text.splitlines():
        content, _, _ = line.partition(COMMENT_CHAR)
        tokens.extend(content.split())
    return tokens


def _parse_header_int(token: str, field: str) -> int:
    if not _INTEGER_RE.fullmatch(token):
        msg = f"invalid {field}: expected integer, found {token!r}"
        raise FormatError(msg)
    return int(token)


def parse_ppm(text: str) -> ImageBuffer:
    """Decode a P3 image.

    Args:
        text: Full file contents

    Returns:
        Decoded ImageBuffer.

    Raises:
        FormatError: If the tag, header, or pixel data is malformed.
    """
    tokens = _tokenize(text)
    if not tokens:
        msg = f"empty image: expected magic number {MAGIC}"
        raise FormatError(msg)
    if tokens[0] != MAGIC:
        msg = f"invalid magic number: expected {MAGIC}, found {tokens[0]!r}"
        raise FormatError(msg)
    if len(tokens) < 1 + len(_HEADER_FIELDS):
        msg = f"truncated header: expected width, height and max color value, found {tokens[1:]}"
        raise FormatError(msg)

    width, height, max_color = (
        _parse_header_int(tok, field) for tok, field in zip(tokens[1:4], _HEADER_FIELDS)
    )
    if width < 1 or height < 1:
        msg = f"invalid dimensions: expected positive width and height, found {width}x{height}"
        raise FormatError(msg)
    if max_color != MAX_COLOR:
        msg = f"invalid max color value: expected {MAX_COLOR}, found {max_color}"
        raise FormatError(msg)

    samples = tokens[4:]
    expected = width * height * 3
    if len(samples) != expected:
        msg = (
            f"pixel data mismatch: expected {expected} values for {width}x{height} image, "
            f"found {len(samples)}"
        )
        raise FormatError(msg)

    bad = next((s for s in samples if not _INTEGER_RE.fullmatch(s)), None)
    if bad is not None:
        msg = f"invalid pixel value: expected integer, found {bad!r}"
        raise FormatError(msg)
    values = np.array([int(s) for s in samples], dtype=np.int64)

    if values.min() < 0 or values.max() > max_color:
        msg = (
            f"pixel values must be in [0,{max_color}], "
            f"found range [{values.min()},{values.max()}]"
        )
        raise ChannelRangeError(msg)

    return ImageBuffer(values.reshape(height, width, 3))


def read_ppm(path: Path | str) -> ImageBuffer:
    """Load a P3 image from disk.

    Raises:
        FileNotFoundError: If the file does not exist.
        FormatError: If the file is not a valid P3 image.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="ascii")
    except UnicodeDecodeError:
        msg = f"{path}: not a plain-text {MAGIC} image"
        raise FormatError(msg) from None

    try:
        image = parse_ppm(text)
    except FormatError as e:
        msg = f"{path}: {e}"
        raise type(e)(msg) from e

    logger.debug(f"Loaded {path} ({image.width}x{image.height})")
    return image


def format_ppm(image: ImageBuffer) -> str:
    """Encode an image as P3 text, one pixel per line."""
    lines = [MAGIC, f"{image.width} {image.height}", str(MAX_COLOR)]
    lines.extend(f"{r} {g} {b}" for r, g, b in image.pixels.tolist())
    return "\n".join(lines) + "\n"


@contextlib.contextmanager
def atomic_output(path: Path) -> Iterator[Path]:
    """Yield a temporary path that replaces ``path`` only if the block succeeds.

    The temporary file lives next to the target and keeps its suffix, so
    encoders that dispatch on extension still work.
    """
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.stem}.", suffix=path.suffix
    )
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        yield tmp_path
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def write_ppm(image: ImageBuffer, path: Path | str) -> None:
    """Write an image as P3 text.

    Args:
        image: Image to encode
        path: Destination file, replaced atomically
    """
    path = Path(path)
    with atomic_output(path) as tmp_path:
        tmp_path.write_text(format_ppm(image), encoding="ascii")
    logger.debug(f"Saved {path} ({image.width}x{image.height})")
