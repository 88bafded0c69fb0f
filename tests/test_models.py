"""
Unit tests for data models and configuration.
"""

from pathlib import Path

import numpy as np
import pytest
from pydantic import ValidationError

from histlocate import (
    BoundingBox,
    ChannelRangeError,
    Config,
    FormatError,
    HistogramConfig,
    ImageBuffer,
    Pixel,
    ReferenceSpec,
)


class TestImageBuffer:
    """Test ImageBuffer construction and access."""

    def test_from_pixels_row_major(self):
        """Test that pixels are laid out row by row."""
        pixels = [(i, 0, 0) for i in range(6)]
        img = ImageBuffer.from_pixels(pixels, width=3, height=2)

        assert (img.width, img.height, img.pixel_count) == (3, 2, 6)
        assert img.pixel_at(2, 0).r == 2
        assert img.pixel_at(0, 1).r == 3

    def test_from_pixel_models(self):
        """Test building from Pixel models."""
        img = ImageBuffer.from_pixels([Pixel(r=1, g=2, b=3)], width=1, height=1)

        assert img.pixel_at(0, 0) == Pixel(r=1, g=2, b=3)

    def test_pixel_count_mismatch(self):
        """Test that the pixel count must equal width * height."""
        with pytest.raises(FormatError, match="expected 4 pixels"):
            ImageBuffer.from_pixels([(0, 0, 0)] * 3, width=2, height=2)

    def test_channel_range_enforced(self):
        """Test that channels above 255 are rejected."""
        with pytest.raises(ChannelRangeError):
            ImageBuffer(np.full((2, 2, 3), 300))

    def test_wrong_shape(self):
        """Test that non-RGB arrays are rejected."""
        with pytest.raises(FormatError):
            ImageBuffer(np.zeros((2, 2, 4)))

    def test_data_read_only(self):
        """Test that the pixel array cannot be modified."""
        img = ImageBuffer.filled(2, 2, (1, 2, 3))

        with pytest.raises(ValueError):
            img.data[0, 0] = (0, 0, 0)

    def test_pixel_at_out_of_bounds(self):
        """Test that reading outside the image raises IndexError."""
        img = ImageBuffer.filled(2, 2, (1, 2, 3))

        with pytest.raises(IndexError):
            img.pixel_at(2, 0)


class TestBoundingBox:
    """Test BoundingBox validation and geometry helpers."""

    @pytest.mark.parametrize("values", [(-1, 0, 1, 1), (0, -1, 1, 1), (0, 0, 0, 1), (0, 0, 1, 0)])
    def test_invalid_boxes(self, values):
        """Test that malformed boxes are rejected."""
        with pytest.raises(ValidationError):
            BoundingBox.from_tuple(values)

    def test_fits_within(self):
        """Test containment against image extents."""
        box = BoundingBox(x=1, y=1, width=2, height=2)

        assert box.fits_within(3, 3)
        assert not box.fits_within(2, 3)

    def test_clip_to(self):
        """Test intersection with the image."""
        box = BoundingBox(x=2, y=1, width=5, height=5)

        assert box.clip_to(4, 4) == BoundingBox(x=2, y=1, width=2, height=3)
        assert box.clip_to(2, 10) is None
        assert box.clip_to(10, 10) == box


class TestConfig:
    """Test configuration validation."""

    def test_histogram_defaults(self):
        """Test the reference configuration of 8 bins per channel."""
        cfg = HistogramConfig()

        assert cfg.bins == 8
        assert cfg.num_bins == 512
        cfg.validate()

    @pytest.mark.parametrize("kwargs", [{"bins": 0}, {"bins": 257}, {"max_color": 65535}])
    def test_histogram_invalid(self, kwargs):
        """Test that unsupported histogram settings are rejected."""
        with pytest.raises(ValueError):
            HistogramConfig(**kwargs).validate()

    def test_paths_coerced(self):
        """Test that string paths become Path objects."""
        cfg = Config(query_paths=["q.ppm"], output_path="out.ppm", templates_path="t.json")

        assert cfg.query_paths == [Path("q.ppm")]
        assert cfg.output_path == Path("out.ppm")
        assert cfg.templates_path == Path("t.json")

    def test_requires_templates_source(self):
        """Test that a run needs reference images or a templates file."""
        cfg = Config(query_paths=[Path("q.ppm")], output_path=Path("out.ppm"))

        with pytest.raises(ValueError, match="reference images or a templates file"):
            cfg.validate()

    def test_invalid_reference_box(self):
        """Test that an invalid reference box is rejected."""
        cfg = Config(
            query_paths=[Path("q.ppm")],
            output_path=Path("out.ppm"),
            references=[ReferenceSpec(image_path=Path("r.ppm"), box=(0, 0, 0, 5))],
        )

        with pytest.raises(ValueError, match="invalid box"):
            cfg.validate()

    def test_duplicate_batch_outputs(self):
        """Test that queries sharing a file name in batch mode are rejected."""
        cfg = Config(
            query_paths=[Path("a/img.ppm"), Path("b/img.ppm")],
            output_path=Path("out"),
            references=[ReferenceSpec(image_path=Path("r.ppm"), box=(0, 0, 1, 1))],
        )

        with pytest.raises(ValueError, match="a/img.ppm and b/img.ppm"):
            cfg.validate()

    def test_output_for_batch(self):
        """Test output naming for single and batch runs."""
        single = Config(query_paths=[Path("a.ppm")], output_path=Path("out.ppm"))
        batch = Config(query_paths=[Path("a.ppm"), Path("b.png")], output_path=Path("out"))

        assert single.output_for(Path("a.ppm")) == Path("out.ppm")
        assert batch.output_for(Path("b.png")) == Path("out") / "b_located.png"
