"""
Color sampling service for agency logos.

Derives a dominant color and a maximally-different secondary color from a
raster image. Sampling is strided and quantized so cost stays bounded
regardless of the uploaded logo's resolution.
"""

import io
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import numpy as np
from loguru import logger
from PIL import Image, UnidentifiedImageError

from viajatheme.errors import DecodeError, ResourceError
from viajatheme.services.colors.color_math import RGB, color_distances, complement, quantize, rgb_to_hex
from viajatheme.services.imaging import fetch_image_bytes
from viajatheme.utils.metrics import get_metrics_instance

MAX_EDGE = 200
SAMPLE_STRIDE = 8
MIN_ALPHA = 200
QUANT_STEP = 16
MIN_SECONDARY_DISTANCE = 100.0

# Used when no pixel survives the alpha filter (fully transparent image).
EMPTY_SAMPLE_FALLBACK: RGB = (128, 128, 128)

ImageSource = Union[bytes, bytearray, str, Path, BinaryIO]


@dataclass(frozen=True)
class ExtractedColorPair:
    """Dominant and secondary color of one extraction, as ``#rrggbb``."""
    dominant: str
    secondary: str


def decode_image(image_bytes: bytes) -> Image.Image:
    """
    Decode raw bytes into a fully loaded PIL image.

    Raises:
        DecodeError: If the bytes are not a decodable raster image
        ResourceError: If decoding would exceed the pixel budget
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except Image.DecompressionBombError as e:
        raise ResourceError("Image exceeds pixel limit", detail=str(e)) from e
    except (UnidentifiedImageError, OSError, EOFError, SyntaxError, ValueError) as e:
        raise DecodeError("Failed to decode image data", detail=str(e)) from e
    return image


def downscale_image(image: Image.Image, max_edge: int = MAX_EDGE) -> Image.Image:
    """
    Proportionally shrink an image so its longer side equals ``max_edge``.

    Images already within the limit are returned untouched.
    """
    width, height = image.size
    longest = max(width, height)
    if longest <= max_edge:
        return image

    scale = max_edge / longest
    if width >= height:
        new_size = (max_edge, max(1, int(height * scale)))
    else:
        new_size = (max(1, int(width * scale)), max_edge)
    logger.debug(f"Downscaling {width}x{height} -> {new_size[0]}x{new_size[1]}")
    return image.resize(new_size, Image.Resampling.BILINEAR)


def read_pixel_buffer(image: Image.Image) -> np.ndarray:
    """
    Return the image's RGBA pixels as an (N, 4) uint8 array in row-major order.

    Raises:
        ResourceError: If the image has no pixels or the buffer cannot be read
    """
    width, height = image.size
    if width == 0 or height == 0:
        raise ResourceError("Image has no pixel data")
    try:
        rgba = image.convert("RGBA")
        buffer = np.asarray(rgba, dtype=np.uint8)
    except (OSError, ValueError, MemoryError) as e:
        raise ResourceError("Pixel buffer unavailable", detail=str(e)) from e
    return buffer.reshape(-1, 4)


def sample_opaque_pixels(pixels_rgba: np.ndarray,
                         stride: int = SAMPLE_STRIDE,
                         min_alpha: int = MIN_ALPHA) -> np.ndarray:
    """
    Take every ``stride``-th pixel and keep those that are opaque enough.

    Returns:
        Raw RGB samples (M, 3) int32, in buffer order
    """
    sampled = pixels_rgba[::stride]
    opaque = sampled[sampled[:, 3] >= min_alpha]
    return opaque[:, :3].astype(np.int32)


def dominant_bucket(samples_rgb: np.ndarray, step: int = QUANT_STEP) -> RGB:
    """
    Most frequent quantized color among the samples.

    Ties resolve to the bucket encountered first in sampling order.
    """
    quantized = quantize(samples_rgb, step)
    counts = Counter(map(tuple, quantized.tolist()))
    (bucket, count), = counts.most_common(1)
    logger.debug(f"Dominant bucket {bucket} with {count}/{len(samples_rgb)} samples "
                 f"across {len(counts)} buckets")
    return tuple(int(c) for c in bucket)


def farthest_sample(samples_rgb: np.ndarray, reference: RGB) -> Tuple[RGB, float]:
    """
    Sample with the largest Euclidean RGB distance from ``reference``.

    Returns:
        Tuple of (sample, distance); the earliest sample wins ties
    """
    distances = color_distances(samples_rgb, reference)
    index = int(np.argmax(distances))
    sample = tuple(int(c) for c in samples_rgb[index])
    return sample, float(distances[index])


def extract_color_pair(image: Image.Image) -> ExtractedColorPair:
    """
    Run the sampling pipeline over a decoded image.

    Args:
        image: Decoded PIL image in any mode

    Returns:
        ExtractedColorPair with dominant and secondary hex colors
    """
    image = downscale_image(image)
    pixels = read_pixel_buffer(image)
    samples = sample_opaque_pixels(pixels)

    if len(samples) == 0:
        logger.warning("No opaque samples in image; using mid-gray fallback")
        dominant = EMPTY_SAMPLE_FALLBACK
        return ExtractedColorPair(
            dominant=rgb_to_hex(*dominant),
            secondary=rgb_to_hex(*complement(dominant)),
        )

    dominant = dominant_bucket(samples)
    secondary, distance = farthest_sample(samples, dominant)

    if distance < MIN_SECONDARY_DISTANCE:
        logger.debug(f"Max distance {distance:.1f} below {MIN_SECONDARY_DISTANCE}; "
                     "using complement of dominant")
        secondary = complement(dominant)

    return ExtractedColorPair(
        dominant=rgb_to_hex(*dominant),
        secondary=rgb_to_hex(*secondary),
    )


class ColorSampler:
    """Extracts a dominant/secondary color pair from logos and other images."""

    def extract(self, source: ImageSource) -> ExtractedColorPair:
        """
        Extract colors from raw bytes, a file object, a path or an http(s) URL.

        Raises:
            DecodeError: If the image cannot be decoded
            ResourceError: If the image or its pixel buffer is unavailable
        """
        if isinstance(source, (bytes, bytearray)):
            return self.extract_bytes(bytes(source))
        if isinstance(source, str) and source.startswith(("http://", "https://")):
            return self.extract_url(source)
        if isinstance(source, (str, Path)):
            return self.extract_path(Path(source))
        if hasattr(source, "read"):
            return self.extract_bytes(source.read())
        raise TypeError(f"Unsupported image source: {type(source).__name__}")

    def extract_bytes(self, image_bytes: bytes) -> ExtractedColorPair:
        start_time = time.time()
        image = decode_image(image_bytes)
        pair = extract_color_pair(image)
        duration_ms = (time.time() - start_time) * 1000

        get_metrics_instance().record_timing("extraction", duration_ms)
        logger.info(f"Extracted colors dominant={pair.dominant} secondary={pair.secondary} "
                    f"in {duration_ms:.1f}ms")
        return pair

    def extract_url(self, image_url: str) -> ExtractedColorPair:
        return self.extract_bytes(fetch_image_bytes(image_url))

    def extract_path(self, path: Path) -> ExtractedColorPair:
        try:
            image_bytes = path.read_bytes()
        except OSError as e:
            raise ResourceError(f"Cannot read image file {path}", detail=str(e)) from e
        return self.extract_bytes(image_bytes)


def extract_colors(source: ImageSource) -> ExtractedColorPair:
    """Convenience wrapper around ``ColorSampler().extract``."""
    return ColorSampler().extract(source)
