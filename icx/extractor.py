import numbers
import os
from typing import Optional
import numpy as np
from PIL import Image
import typer  # for typer.echo

from icx.color import Color
from icx.kmeans import cluster
from icx.stats import PaletteResult, derive

_ICX_VERBOSE_ENV = os.environ.get("ICX_VERBOSE", "0").lower()
DEFAULT_VERBOSE = _ICX_VERBOSE_ENV in ["1", "true", "yes"]

DEFAULT_MAX_ITERATIONS = 20
DEFAULT_CONVERGENCE = 5.0
DEFAULT_SEED = 0


class PaletteExtractionError(ValueError):
    """Raised when a request is rejected before clustering starts."""


def rgba_to_samples(pixels) -> np.ndarray:
    """
    Decode a flat RGBA buffer into an (N, 3) uint8 sample array, dropping alpha.

    Args:
        pixels: bytes, bytearray or memoryview; a uint8 ndarray; or a sequence
                of ints in 0..255.

    Raises:
        PaletteExtractionError: If the buffer length is not a multiple of 4, an
            ndarray is not uint8, or a value is not a byte.
    """
    if isinstance(pixels, np.ndarray):
        # Other dtypes would be reinterpreted byte by byte
        if pixels.dtype != np.uint8:
            raise PaletteExtractionError(f"Pixel array must have dtype uint8, got {pixels.dtype}")
        buf = pixels.reshape(-1)
    elif isinstance(pixels, (bytes, bytearray, memoryview)):
        buf = np.frombuffer(bytes(pixels), dtype=np.uint8)
    else:
        values = np.asarray(pixels)
        if values.size and not np.issubdtype(values.dtype, np.integer):
            raise PaletteExtractionError(f"Pixel values must be integers, got dtype {values.dtype}")
        if values.size and (values.min() < 0 or values.max() > 255):
            raise PaletteExtractionError("Pixel values must be in 0..255")
        buf = values.reshape(-1).astype(np.uint8)
    if len(buf) % 4 != 0:
        raise PaletteExtractionError("Pixel data must be RGBA format (length divisible by 4)")
    return buf.reshape((-1, 4))[:, :3].copy()


class PaletteExtractor:
    """
    Extracts k-color palettes from RGBA pixel data.

    Holds the tuning parameters shared by every extraction made through the
    instance. Change them between runs only; an instance is not meant to be
    shared across threads.
    """

    def __init__(
        self,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        convergence: float = DEFAULT_CONVERGENCE,
        verbose: Optional[bool] = None,
        seed: int = DEFAULT_SEED,
    ):
        self.max_iterations = DEFAULT_MAX_ITERATIONS
        self.convergence = DEFAULT_CONVERGENCE
        self.verbose = DEFAULT_VERBOSE
        self.seed = DEFAULT_SEED
        self.set_max_iterations(max_iterations)
        self.set_convergence(convergence)
        if verbose is not None:
            self.set_verbose(verbose)
        self.set_seed(seed)

    def set_max_iterations(self, max_iterations: int) -> None:
        if int(max_iterations) < 1:
            raise PaletteExtractionError(f"max_iterations must be a positive integer, got {max_iterations}")
        self.max_iterations = int(max_iterations)

    def set_convergence(self, convergence: float) -> None:
        if not float(convergence) > 0:
            raise PaletteExtractionError(f"convergence must be a positive number, got {convergence}")
        self.convergence = float(convergence)

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = bool(verbose)

    def set_seed(self, seed: int) -> None:
        self.seed = int(seed)

    def extract_palette_from_pixels(self, pixels, k: int) -> PaletteResult:
        """
        Cluster an RGBA buffer into k colors.

        Args:
            pixels: bytes-like RGBA data, 4 bytes per pixel. Alpha is ignored.
            k (int): Palette size, must be greater than 0.

        Returns:
            PaletteResult: k entries in cluster order, percentages summing to ~100.

        Raises:
            PaletteExtractionError: On a malformed buffer, k < 1, or no pixels.
        """
        samples = rgba_to_samples(pixels)

        if isinstance(k, bool) or not isinstance(k, numbers.Integral):
            raise PaletteExtractionError(f"Number of colors (k) must be an integer, got {k!r}")
        if k < 1:
            raise PaletteExtractionError("Number of colors (k) must be greater than 0")

        if len(samples) == 0:
            raise PaletteExtractionError("No valid pixels found")

        if self.verbose:
            typer.echo(f"Processing {len(samples)} pixels for {k} colors")

        result = cluster(
            samples,
            k,
            max_iterations=self.max_iterations,
            convergence_threshold=self.convergence,
            seed=self.seed,
            verbose=self.verbose,
        )

        if self.verbose:
            typer.echo(f"Clustering finished after {result.iterations} pass(es), final movement {result.delta:.3f}")

        return derive(result, k, len(samples))

    def extract_palette_from_image_data(self, image_data, width: int, height: int, k: int) -> PaletteResult:
        """Like extract_palette_from_pixels, but first checks the buffer against the image dimensions."""
        expected_len = int(width) * int(height) * 4
        if len(image_data) != expected_len:
            raise PaletteExtractionError(
                f"Image data length {len(image_data)} doesn't match expected length {expected_len} "
                f"for {width}x{height} RGBA image"
            )
        return self.extract_palette_from_pixels(image_data, k)

    def extract_palette_from_image(self, image: Image.Image, k: int) -> PaletteResult:
        """Extract a palette from a PIL Image of any mode."""
        rgba = image.convert("RGBA")
        width, height = rgba.size
        return self.extract_palette_from_image_data(rgba.tobytes(), width, height, k)

    def extract_dominant_color(self, pixels) -> Color:
        """Single-cluster palette: the mean color of the buffer."""
        result = self.extract_palette_from_pixels(pixels, 1)
        color = result.get_color(0)
        if color is None:
            raise PaletteExtractionError("Failed to extract dominant color")
        return color
