#!/usr/bin/env python3
"""Overlay rendering of a matched bounding box."""

from __future__ import annotations

import logging

from .config import RED, Color
from .models import BoundingBox, ImageBuffer

logger = logging.getLogger(__name__)


def render_overlay(image: ImageBuffer, box: BoundingBox, color: Color = RED) -> ImageBuffer:
    """Fill the box region of an image with a solid color.

    Pixels are addressed by the image's own row stride. The part of the box
    that falls outside the image is skipped, so the output always keeps the
    input's width and height.

    Args:
        image: Source image (left untouched)
        box: Region to mark
        color: RGB fill color

    Returns:
        New ImageBuffer with the visible part of the box filled.
    """
    out = image.data.copy()

    visible = box.clip_to(image.width, image.height)
    if visible != box:
        logger.debug(
            f"Box {box.as_tuple()} exceeds {image.width}x{image.height} image, "
            f"drawing {visible.as_tuple() if visible else 'nothing'}"
        )

    if visible is not None:
        out[visible.y : visible.y + visible.height, visible.x : visible.x + visible.width] = color

    return ImageBuffer(out)
