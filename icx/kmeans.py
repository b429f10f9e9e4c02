from dataclasses import dataclass
import numbers
import numpy as np
import typer  # for typer.echo

from icx.sample import as_samples, create_random


@dataclass(frozen=True)
class ClusteringResult:
    centroids: np.ndarray   # (k, 3) uint8
    indices: np.ndarray     # (N,) cluster index per sample
    iterations: int         # assign/recompute passes that ran
    delta: float            # total centroid movement of the last pass


def get_closest_centroid(samples: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """
    Assign every sample to its nearest centroid.

    Centroids are scanned in index order and a later centroid only wins on a
    strictly smaller distance, so ties always resolve to the lower index.

    Args:
        samples (np.ndarray): (N, 3) sample array.
        centroids (np.ndarray): (k, 3) centroid array.

    Returns:
        np.ndarray: (N,) array of centroid indices.
    """
    data = samples.astype(np.float64)
    closest = np.zeros(len(data), dtype=np.intp)
    min_distance = np.full(len(data), np.inf)

    # One centroid at a time keeps memory at O(N) instead of O(N*k)
    for idx, centroid in enumerate(centroids.astype(np.float64)):
        distance = np.linalg.norm(data - centroid, axis=1)
        closer = distance < min_distance
        min_distance[closer] = distance[closer]
        closest[closer] = idx

    return closest


def recalculate_centroids(samples: np.ndarray, centroids: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """
    Move each centroid to the integer mean of the samples assigned to it.

    The mean truncates toward zero. A centroid with no samples keeps its
    previous value.

    Returns:
        np.ndarray: New (k, 3) uint8 centroid array; the input is not modified.
    """
    k = len(centroids)
    counts = np.bincount(indices, minlength=k)[:k]
    sums = np.zeros((k, 3), dtype=np.int64)
    np.add.at(sums, indices, samples.astype(np.int64))

    updated = centroids.copy()
    populated = counts > 0
    updated[populated] = (sums[populated] // counts[populated, None]).astype(np.uint8)
    return updated


def check_loop(centroids: np.ndarray, old_centroids: np.ndarray) -> float:
    """Total distance moved by all centroids between two passes."""
    moved = centroids.astype(np.float64) - old_centroids.astype(np.float64)
    return float(np.linalg.norm(moved, axis=1).sum())


def cluster(
    samples,
    k: int,
    max_iterations: int = 20,
    convergence_threshold: float = 5.0,
    seed: int = 0,
    verbose: bool = False,
) -> ClusteringResult:
    """
    Run k-means over RGB samples.

    Centroids start at uniformly random colors drawn from a generator seeded
    with `seed` (they are not picked from the input), so identical input and
    parameters always give the identical result.

    Args:
        samples: (N, 3) uint8 array or any array-like of RGB triples. Must be non-empty.
        k (int): Number of clusters, >= 1. May exceed N; the surplus clusters stay empty.
        max_iterations (int): Upper bound on assign/recompute passes.
        convergence_threshold (float): Stop once total centroid movement in a pass is below this.
        seed (int): Seed for the centroid initialization.
        verbose (bool): Echo the movement of every pass.

    Returns:
        ClusteringResult: Final centroids and the assignments made against them.

    Raises:
        ValueError: If samples is empty or out of range, or k is not an integer >= 1.
    """
    data = samples if isinstance(samples, np.ndarray) and samples.dtype == np.uint8 else as_samples(samples)
    data = data.reshape((-1, 3))
    if len(data) == 0:
        raise ValueError("Cannot cluster an empty sample set")
    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise ValueError(f"Number of clusters must be an integer, got {k!r}")
    if k < 1:
        raise ValueError(f"Number of clusters must be at least 1, got {k}")
    if k > len(data) and verbose:
        typer.echo(f"Note: k={k} exceeds {len(data)} samples; some clusters will stay empty.")

    rng = np.random.default_rng(seed)
    centroids = np.stack([create_random(rng) for _ in range(k)])

    iterations = 0
    while True:
        indices = get_closest_centroid(data, centroids)
        old_centroids = centroids
        centroids = recalculate_centroids(data, centroids, indices)
        delta = check_loop(centroids, old_centroids)
        iterations += 1
        if verbose:
            typer.echo(f"  k-means pass {iterations}: centroid movement {delta:.3f}")
        if delta < convergence_threshold or iterations >= max_iterations:
            break

    # Final assignment against the centroids actually returned
    indices = get_closest_centroid(data, centroids)
    return ClusteringResult(centroids=centroids, indices=indices, iterations=iterations, delta=delta)
