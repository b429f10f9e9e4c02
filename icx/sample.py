import numpy as np


def as_samples(values) -> np.ndarray:
    """
    Coerce an array-like of RGB triples to an (N, 3) uint8 sample array.

    Args:
        values: Anything numpy can turn into rows of three channel values
                (list of tuples, ndarray, list of Color objects).

    Returns:
        np.ndarray: Array of shape (N, 3), dtype uint8.

    Raises:
        ValueError: If a channel is not an integer or lies outside 0..255.
    """
    arr = np.asarray([tuple(v) for v in values] if not isinstance(values, np.ndarray) else values)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.uint8)
    if arr.dtype == np.uint8:
        return arr.reshape((-1, 3))
    if not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"Sample channels must be integers, got dtype {arr.dtype}")
    if arr.min() < 0 or arr.max() > 255:
        raise ValueError(f"Sample channels must be in 0..255, got values in {arr.min()}..{arr.max()}")
    return arr.reshape((-1, 3)).astype(np.uint8)


def difference(c1, c2) -> float:
    """Euclidean distance between two samples in raw 0-255 channel space."""
    # Cast first: uint8 subtraction wraps around
    d = np.asarray(c1, dtype=np.float64) - np.asarray(c2, dtype=np.float64)
    return float(np.sqrt(np.sum(d * d)))


def create_random(rng: np.random.Generator) -> np.ndarray:
    """Draw one sample with every channel uniform over 0..255."""
    return rng.integers(0, 256, size=3).astype(np.uint8)
