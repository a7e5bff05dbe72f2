"""
Unit tests for the shared RGB helpers.
"""
import numpy as np
import pytest

from viajatheme.services.colors.color_math import (
    as_rgb, color_distances, complement, hex_to_rgb, is_hex_color, normalize_hex,
    quantize, rgb_string, rgb_to_hex, round_half_up, shade, tint,
)


class TestHexConversion:
    """Test hex <-> RGB conversion"""

    def test_rgb_to_hex_is_lowercase(self):
        assert rgb_to_hex(255, 0, 0) == "#ff0000"
        assert rgb_to_hex(59, 130, 246) == "#3b82f6"
        assert rgb_to_hex(0, 0, 0) == "#000000"

    def test_rgb_to_hex_clamps(self):
        assert rgb_to_hex(300, -5, 128) == "#ff0080"

    def test_hex_to_rgb_accepts_either_case(self):
        assert hex_to_rgb("#3B82F6") == (59, 130, 246)
        assert hex_to_rgb("#3b82f6") == (59, 130, 246)

    @pytest.mark.parametrize("bad", ["3b82f6", "#3b82f", "#3b82f6aa", "#gggggg", "", None])
    def test_hex_to_rgb_rejects_malformed(self, bad):
        with pytest.raises(ValueError):
            hex_to_rgb(bad)

    def test_is_hex_color(self):
        assert is_hex_color("#AbCdEf")
        assert not is_hex_color("blue")
        assert not is_hex_color(123)

    def test_normalize_hex(self):
        assert normalize_hex("#F97316") == "#f97316"

    def test_as_rgb_accepts_sequences(self):
        assert as_rgb([10, 20, 30]) == (10, 20, 30)
        assert as_rgb("#0a141e") == (10, 20, 30)


class TestChannelMath:
    """Test rounding, mixing and distance helpers"""

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(1.5) == 2
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4999) == 2

    def test_complement(self):
        assert complement((255, 0, 0)) == (0, 255, 255)
        assert complement((128, 128, 128)) == (127, 127, 127)

    def test_tint_and_shade_endpoints(self):
        assert tint((59, 130, 246), 0.0) == (59, 130, 246)
        assert tint((59, 130, 246), 1.0) == (255, 255, 255)
        assert shade((59, 130, 246), 1.0) == (0, 0, 0)

    def test_shade_rounds_half_up(self):
        # 246 * 0.9 = 221.4, 59 * 0.9 = 53.1
        assert shade((59, 130, 246), 0.1) == (53, 117, 221)

    def test_color_distances(self):
        samples = np.array([[3, 4, 0], [10, 10, 10], [0, 0, 0]])
        assert color_distances(samples, (0, 0, 0)).tolist() == pytest.approx([5.0, 300 ** 0.5, 0.0])

    def test_color_distance_is_symmetric(self):
        a, b = (12, 200, 31), (240, 5, 99)
        assert float(color_distances(a, b)) == float(color_distances(b, a))
        assert float(color_distances(a, a)) == 0.0

    def test_quantize_scalar(self):
        assert quantize(255) == 240
        assert quantize(15) == 0
        assert quantize(16) == 16

    def test_quantize_array(self):
        quantized = quantize(np.array([[255, 15, 16], [31, 32, 0]]))
        assert quantized.tolist() == [[240, 0, 16], [16, 32, 0]]

    def test_rgb_string(self):
        assert rgb_string((53, 117, 221)) == "53 117 221"
