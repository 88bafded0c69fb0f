"""Joint RGB color histogram extraction."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from .config import HistogramConfig
from .exceptions import ChannelRangeError, FormatError
from .models import ImageBuffer, Signature

_COLOR_CHANNELS = 3
_DEFAULT_CONFIG = HistogramConfig()


def _as_pixel_rows(image: ImageBuffer | npt.ArrayLike) -> npt.NDArray[np.int64]:
    """Flatten an image or raw pixel array to (N, 3) int64 rows."""
    if isinstance(image, ImageBuffer):
        return image.pixels.astype(np.int64)

    arr = np.asarray(image)
    if arr.ndim not in (2, 3) or arr.shape[-1] != _COLOR_CHANNELS:
        msg = f"expected pixel array of shape (N, 3) or (H, W, 3), got {arr.shape}"
        raise FormatError(msg)
    return arr.reshape(-1, _COLOR_CHANNELS).astype(np.int64)


def compute_histogram(
    image: ImageBuffer | npt.ArrayLike, cfg: HistogramConfig = _DEFAULT_CONFIG
) -> Signature:
    """Compute the joint RGB histogram of every pixel in an image.

    Each channel value ``v`` falls into bin ``floor(v / (256 / B))``, evaluated
    exactly as ``(v * B) // 256``. The joint bin of a pixel is
    ``r_bin * B**2 + g_bin * B + b_bin``.

    Args:
        image: ImageBuffer, or raw pixel array of shape (N, 3) or (H, W, 3)
        cfg: Histogram configuration (bin count B and channel maximum)

    Returns:
        int64 vector of length B**3 whose entries sum to the pixel count.

    Raises:
        ChannelRangeError: If any channel is outside [0, cfg.max_color].
    """
    rows = _as_pixel_rows(image)
    bins = cfg.bins

    if rows.size and (rows.min() < 0 or rows.max() > cfg.max_color):
        msg = (
            f"channel values must be in [0,{cfg.max_color}], "
            f"found range [{rows.min()},{rows.max()}]"
        )
        raise ChannelRangeError(msg)

    channel_bins = (rows * bins) // (cfg.max_color + 1)
    joint = channel_bins[:, 0] * bins * bins + channel_bins[:, 1] * bins + channel_bins[:, 2]

    return np.bincount(joint, minlength=cfg.num_bins).astype(np.int64)


def populated_bins(histogram: Signature) -> dict[int, int]:
    """Map each non-empty bin index to its count.

    Args:
        histogram: Signature vector

    Returns:
        Dictionary of bin index -> count for bins with count > 0.
    """
    indices = np.flatnonzero(histogram)
    return {int(i): int(histogram[i]) for i in indices}
