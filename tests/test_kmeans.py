# tests/test_kmeans.py
import numpy as np
import pytest
from icx import kmeans, sample


def test_difference_is_zero_for_identical_samples():
    assert sample.difference((12, 200, 7), (12, 200, 7)) == 0.0


def test_difference_is_symmetric_and_does_not_wrap():
    a = np.array([0, 0, 0], dtype=np.uint8)
    b = np.array([255, 0, 0], dtype=np.uint8)
    # uint8 subtraction would wrap 0 - 255 to 1
    assert sample.difference(a, b) == pytest.approx(255.0)
    assert sample.difference(a, b) == sample.difference(b, a)
    assert sample.difference((1, 2, 3), (4, 6, 3)) == pytest.approx(5.0)


def test_create_random_is_seeded_and_in_range():
    first = sample.create_random(np.random.default_rng(7))
    second = sample.create_random(np.random.default_rng(7))
    assert first.dtype == np.uint8
    assert first.shape == (3,)
    assert np.array_equal(first, second)


def test_get_closest_centroid_prefers_lower_index_on_ties():
    samples = np.array([[10, 10, 10]], dtype=np.uint8)
    # Both centroids are exactly 10 away
    centroids = np.array([[0, 10, 10], [20, 10, 10]], dtype=np.uint8)
    indices = kmeans.get_closest_centroid(samples, centroids)
    assert indices.tolist() == [0]


def test_get_closest_centroid_picks_nearest():
    samples = np.array([[250, 0, 0], [5, 5, 250], [0, 0, 0]], dtype=np.uint8)
    centroids = np.array([[0, 0, 255], [255, 0, 0], [0, 0, 0]], dtype=np.uint8)
    assert kmeans.get_closest_centroid(samples, centroids).tolist() == [1, 0, 2]


def test_recalculate_centroids_truncates_mean():
    samples = np.array([[0, 0, 0], [1, 1, 1], [255, 255, 255], [254, 254, 253]], dtype=np.uint8)
    centroids = np.array([[50, 50, 50], [100, 100, 100]], dtype=np.uint8)
    indices = np.array([0, 0, 1, 1])

    updated = kmeans.recalculate_centroids(samples, centroids, indices)

    # 0.5 -> 0 and 254.5 -> 254, 254.0 -> 254
    assert updated.tolist() == [[0, 0, 0], [254, 254, 254]]
    assert updated.dtype == np.uint8
    # The input array is left untouched
    assert centroids.tolist() == [[50, 50, 50], [100, 100, 100]]


def test_recalculate_centroids_keeps_empty_cluster():
    samples = np.array([[10, 20, 30], [30, 40, 50]], dtype=np.uint8)
    centroids = np.array([[0, 0, 0], [200, 100, 50]], dtype=np.uint8)
    indices = np.array([0, 0])

    updated = kmeans.recalculate_centroids(samples, centroids, indices)
    assert updated.tolist() == [[20, 30, 40], [200, 100, 50]]


def test_check_loop_sums_centroid_movement():
    old = np.array([[0, 0, 0], [10, 10, 10]], dtype=np.uint8)
    new = np.array([[3, 4, 0], [10, 10, 10]], dtype=np.uint8)
    assert kmeans.check_loop(new, old) == pytest.approx(5.0)
    assert kmeans.check_loop(old, old) == 0.0


def test_cluster_is_deterministic_for_same_seed():
    rng = np.random.default_rng(123)
    samples = rng.integers(0, 256, size=(200, 3)).astype(np.uint8)

    first = kmeans.cluster(samples, 4, seed=3)
    second = kmeans.cluster(samples, 4, seed=3)

    assert np.array_equal(first.centroids, second.centroids)
    assert np.array_equal(first.indices, second.indices)


def test_cluster_returns_assignments_consistent_with_centroids():
    rng = np.random.default_rng(5)
    samples = rng.integers(0, 256, size=(300, 3)).astype(np.uint8)

    result = kmeans.cluster(samples, 6, max_iterations=3, convergence_threshold=0.001)

    assert result.centroids.shape == (6, 3)
    assert result.centroids.dtype == np.uint8
    assert result.indices.shape == (300,)
    assert result.indices.min() >= 0 and result.indices.max() < 6
    expected = kmeans.get_closest_centroid(samples, result.centroids)
    assert np.array_equal(result.indices, expected)


def test_cluster_respects_iteration_cap():
    rng = np.random.default_rng(9)
    samples = rng.integers(0, 256, size=(500, 3)).astype(np.uint8)

    # A negative threshold can never be reached, so only the cap stops the loop
    result = kmeans.cluster(samples, 8, max_iterations=4, convergence_threshold=-1.0)
    assert result.iterations == 4


def test_cluster_single_cluster_is_truncated_mean():
    samples = [(255, 0, 0)] * 6 + [(0, 255, 0)] * 2
    result = kmeans.cluster(samples, 1)
    # (255*6)/8 = 191.25, (255*2)/8 = 63.75
    assert result.centroids.tolist() == [[191, 63, 0]]
    assert result.indices.tolist() == [0] * 8


def test_cluster_with_more_clusters_than_samples():
    samples = np.array([[40, 80, 120]], dtype=np.uint8)
    result = kmeans.cluster(samples, 3)
    assert result.centroids.shape == (3, 3)
    assert result.indices.shape == (1,)


def test_cluster_rejects_bad_preconditions():
    with pytest.raises(ValueError):
        kmeans.cluster(np.zeros((0, 3), dtype=np.uint8), 2)
    with pytest.raises(ValueError):
        kmeans.cluster([(1, 2, 3)], 0)


def test_cluster_verbose_echoes_progress(capsys):
    kmeans.cluster([(0, 0, 0), (255, 255, 255)], 2, verbose=True)
    out = capsys.readouterr().out
    assert "k-means pass 1" in out


def test_as_samples_rejects_out_of_range_and_non_integer_channels():
    with pytest.raises(ValueError, match="0..255"):
        kmeans.cluster([(300, 0, 0)], 1)
    with pytest.raises(ValueError, match="0..255"):
        sample.as_samples([(-1, 0, 0)])
    with pytest.raises(ValueError, match="integers"):
        sample.as_samples(np.array([[0.5, 1.0, 2.0]]))
    assert sample.as_samples([(0, 128, 255)]).tolist() == [[0, 128, 255]]


def test_cluster_rejects_non_integer_k():
    with pytest.raises(ValueError, match="must be an integer"):
        kmeans.cluster([(1, 2, 3)], 2.5)


def test_cluster_stops_early_once_converged():
    samples = np.full((10, 3), 77, dtype=np.uint8)

    result = kmeans.cluster(samples, 1, max_iterations=20, convergence_threshold=5.0)

    # First pass jumps onto the data, the second one does not move
    assert result.iterations < 20
    assert result.delta < 5.0
    assert result.centroids.tolist() == [[77, 77, 77]]


def test_cluster_convergence_test_is_strict():
    samples = np.full((10, 3), 77, dtype=np.uint8)

    # Movement settles at exactly 0.0, which is not below a 0.0 threshold
    result = kmeans.cluster(samples, 1, max_iterations=6, convergence_threshold=0.0)

    assert result.delta == 0.0
    assert result.iterations == 6


def test_cluster_initializes_centroids_with_random_colors():
    samples = np.array([[17, 17, 17]], dtype=np.uint8)
    seed = 5

    rng = np.random.default_rng(seed)
    draws = [sample.create_random(rng) for _ in range(4)]

    result = kmeans.cluster(samples, 4, seed=seed)

    winner = int(result.indices[0])
    assert result.centroids[winner].tolist() == [17, 17, 17]
    # Clusters that never received a sample still hold their initial draw
    for idx in range(4):
        if idx != winner:
            assert np.array_equal(result.centroids[idx], draws[idx])
    assert not all(np.array_equal(d, samples[0]) for d in draws)
