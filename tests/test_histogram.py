"""
Unit tests for color histogram extraction.
"""

import numpy as np
import pytest

from histlocate import ChannelRangeError, FormatError, HistogramConfig, ImageBuffer, compute_histogram
from histlocate.histogram import populated_bins


class TestComputeHistogram:
    """Test joint RGB histogram extraction."""

    def test_signature_length(self):
        """Test that the signature has B**3 entries."""
        img = ImageBuffer.filled(4, 4, (10, 20, 30))

        assert compute_histogram(img).shape == (512,)
        assert compute_histogram(img, HistogramConfig(bins=4)).shape == (64,)

    def test_sum_equals_pixel_count(self):
        """Test that every pixel lands in exactly one bin."""
        rng = np.random.default_rng(0)
        for width, height in [(1, 1), (7, 3), (64, 48)]:
            img = ImageBuffer(rng.integers(0, 256, (height, width, 3)))
            hist = compute_histogram(img)

            assert hist.sum() == width * height
            assert np.all(hist >= 0)

    def test_pure_blue_single_bin(self):
        """Test that a solid blue image fills only the (0, 0, 7) bin."""
        img = ImageBuffer.filled(4, 4, (0, 0, 255))
        hist = compute_histogram(img)

        assert populated_bins(hist) == {7: 16}

    def test_bin_boundaries(self):
        """Test channel values on either side of a bin edge."""
        pixels = np.array([[31, 32, 255], [0, 223, 224]])
        hist = compute_histogram(pixels)

        # (0, 1, 7) -> 0*64 + 1*8 + 7 = 15 ; (0, 6, 7) -> 0 + 48 + 7 = 55
        assert populated_bins(hist) == {15: 1, 55: 1}

    def test_top_value_maps_to_last_bin(self):
        """Test that 255 stays inside the histogram."""
        hist = compute_histogram(np.array([[255, 255, 255]]))

        assert hist[511] == 1

    def test_bins_not_dividing_256(self):
        """Test the floor rule for a bin count that does not divide 256."""
        cfg = HistogramConfig(bins=3)
        hist = compute_histogram(np.array([[85, 86, 255]]), cfg)

        # r_bin 0, g_bin 1, b_bin 2 -> 0*9 + 1*3 + 2 = 5
        assert populated_bins(hist) == {5: 1}

    def test_accepts_raw_image_array(self):
        """Test that (H, W, 3) arrays match the equivalent ImageBuffer."""
        data = np.random.default_rng(1).integers(0, 256, (5, 6, 3))

        np.testing.assert_array_equal(
            compute_histogram(data), compute_histogram(ImageBuffer(data))
        )

    def test_deterministic(self):
        """Test that repeated extraction gives the same signature."""
        img = ImageBuffer(np.random.default_rng(2).integers(0, 256, (10, 10, 3)))

        np.testing.assert_array_equal(compute_histogram(img), compute_histogram(img))

    def test_empty_pixels(self):
        """Test that no pixels gives an all-zero signature."""
        hist = compute_histogram(np.zeros((0, 3), dtype=np.int64))

        assert hist.shape == (512,)
        assert hist.sum() == 0

    @pytest.mark.parametrize("bad", [[[0, 0, 256]], [[-1, 0, 0]]])
    def test_out_of_range_channel_rejected(self, bad):
        """Test that out-of-domain channels are a hard error."""
        with pytest.raises(ChannelRangeError):
            compute_histogram(np.array(bad))

    def test_wrong_shape_rejected(self):
        """Test that arrays without three channels are rejected."""
        with pytest.raises(FormatError):
            compute_histogram(np.zeros((4, 4)))
