"""Data structures shared by the extractor, matcher and renderer."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import ChannelRangeError, FormatError

_COLOR_CHANNELS = 3
_MAX_COLOR = 255

Signature = npt.NDArray[np.int64]


class Pixel(BaseModel):
    """Single RGB pixel with 8-bit channels.

    Attributes:
        r: Red intensity (0-255).
        g: Green intensity (0-255).
        b: Blue intensity (0-255).
    """
    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=_MAX_COLOR)
    g: int = Field(ge=0, le=_MAX_COLOR)
    b: int = Field(ge=0, le=_MAX_COLOR)

    def as_tuple(self) -> tuple[int, int, int]:
        """Return the pixel as an (r, g, b) tuple."""
        return (self.r, self.g, self.b)


class BoundingBox(BaseModel):
    """Axis-aligned rectangle in image coordinates.

    Attributes:
        x: Left column of the box (inclusive).
        y: Top row of the box (inclusive).
        width: Number of columns covered, at least 1.
        height: Number of rows covered, at least 1.
    """
    model_config = ConfigDict(frozen=True)

    x: int = Field(ge=0)
    y: int = Field(ge=0)
    width: int = Field(ge=1)
    height: int = Field(ge=1)

    @classmethod
    def from_tuple(cls, values: Sequence[int]) -> BoundingBox:
        """Build a box from an (x, y, width, height) sequence."""
        x, y, width, height = values
        return cls(x=x, y=y, width=width, height=height)

    def as_tuple(self) -> tuple[int, int, int, int]:
        """Return the box as an (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def fits_within(self, width: int, height: int) -> bool:
        """Check whether the whole box lies inside a width x height image."""
        return self.x + self.width <= width and self.y + self.height <= height

    def clip_to(self, width: int, height: int) -> BoundingBox | None:
        """Intersect the box with a width x height image.

        Returns:
            The visible part of the box, or None if nothing of it is inside the image.
        """
        x_end = min(self.x + self.width, width)
        y_end = min(self.y + self.height, height)
        if x_end <= self.x or y_end <= self.y:
            return None
        return BoundingBox(x=self.x, y=self.y, width=x_end - self.x, height=y_end - self.y)


class ImageBuffer:
    """Decoded RGB raster.

    Pixels are held as a read-only ``(height, width, 3)`` uint8 array, which
    flattens to row-major order (row 0 first, left to right within a row).
    """

    def __init__(self, data: npt.ArrayLike, max_color: int = _MAX_COLOR):
        """Validate and wrap pixel data.

        Args:
            data: Array of shape (height, width, 3) with integer channels.
            max_color: Largest allowed channel value.

        Raises:
            FormatError: If data does not have shape (height, width, 3).
            ChannelRangeError: If any channel is outside [0, max_color].
        """
        arr = np.asarray(data)
        if arr.ndim != 3 or arr.shape[2] != _COLOR_CHANNELS:
            msg = f"expected pixel array of shape (height, width, 3), got {arr.shape}"
            raise FormatError(msg)
        if arr.size and (arr.min() < 0 or arr.max() > max_color):
            msg = (
                f"channel values must be in [0,{max_color}], "
                f"found range [{arr.min()},{arr.max()}]"
            )
            raise ChannelRangeError(msg)

        self._data = arr.astype(np.uint8, copy=True)
        self._data.flags.writeable = False

    @classmethod
    def from_pixels(
        cls, pixels: Iterable[Pixel | Sequence[int]], width: int, height: int
    ) -> ImageBuffer:
        """Build a buffer from a row-major pixel sequence.

        Args:
            pixels: Pixel models or (r, g, b) triples in row-major order.
            width: Image width in pixels.
            height: Image height in pixels.

        Returns:
            New ImageBuffer.

        Raises:
            FormatError: If the pixel count differs from width * height.
        """
        rows = [p.as_tuple() if isinstance(p, Pixel) else tuple(p) for p in pixels]
        if len(rows) != width * height:
            msg = f"expected {width * height} pixels for {width}x{height} image, got {len(rows)}"
            raise FormatError(msg)
        arr = np.array(rows, dtype=np.int64).reshape(height, width, _COLOR_CHANNELS)
        return cls(arr)

    @classmethod
    def filled(cls, width: int, height: int, color: Sequence[int]) -> ImageBuffer:
        """Build a width x height buffer of a single color."""
        arr = np.empty((height, width, _COLOR_CHANNELS), dtype=np.int64)
        arr[:, :] = color
        return cls(arr)

    @property
    def data(self) -> npt.NDArray[np.uint8]:
        """Read-only (height, width, 3) pixel array."""
        return self._data

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def pixels(self) -> npt.NDArray[np.uint8]:
        """Row-major (width * height, 3) view of the pixel data."""
        return self._data.reshape(-1, _COLOR_CHANNELS)

    def pixel_at(self, x: int, y: int) -> Pixel:
        """Return the pixel at column x, row y.

        Raises:
            IndexError: If (x, y) is outside the image.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            msg = f"pixel ({x}, {y}) outside {self.width}x{self.height} image"
            raise IndexError(msg)
        r, g, b = (int(c) for c in self._data[y, x])
        return Pixel(r=r, g=g, b=b)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageBuffer):
            return NotImplemented
        return np.array_equal(self._data, other._data)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ImageBuffer(width={self.width}, height={self.height})"


class Template(BaseModel):
    """Labeled example: reference object box plus the reference image's signature.

    Attributes:
        box: Known object location in the reference image.
        histogram: Color histogram of the full reference image (read-only).
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    box: BoundingBox
    histogram: np.ndarray

    @field_validator("histogram", mode="before")
    @classmethod
    def _freeze_histogram(cls, value: npt.ArrayLike) -> np.ndarray:
        raw = np.asarray(value)
        if raw.size and raw.dtype.kind not in "iuf":
            msg = f"histogram counts must be numbers, got dtype {raw.dtype}"
            raise ValueError(msg)
        if raw.dtype.kind == "f" and not np.all(np.isfinite(raw) & (raw == np.floor(raw))):
            msg = "histogram counts must be whole numbers"
            raise ValueError(msg)
        if raw.size and raw.min() < 0:
            msg = f"histogram counts must be non-negative, found {raw.min()}"
            raise ValueError(msg)

        arr = np.array(raw, dtype=np.int64)
        if arr.ndim != 1:
            msg = f"histogram must be one-dimensional, got shape {arr.shape}"
            raise ValueError(msg)
        arr.flags.writeable = False
        return arr


class MatchResult(BaseModel):
    """Outcome of nearest-neighbor selection.

    Attributes:
        box: Bounding box of the closest template.
        distance: Distance between the query and that template.
        template_index: Position of the template in the store.
    """
    model_config = ConfigDict(frozen=True)

    box: BoundingBox
    distance: float = Field(ge=0.0)
    template_index: int = Field(ge=0)


class LocateResult(BaseModel):
    """Result of locating the object in one query image.

    Attributes:
        match: Selected template match.
        image: Query image with the selected box drawn on it.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    match: MatchResult
    image: ImageBuffer
