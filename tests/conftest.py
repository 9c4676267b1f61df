import math

import numpy as np
import pytest

from tsp_nnopt.solvers import tour_length


def random_int_matrix(n: int, seed: int, high: int = 50) -> np.ndarray:
    rng = np.random.default_rng(seed)
    upper = np.triu(rng.integers(1, high, size=(n, n)), 1)
    return (upper + upper.T).astype(float)


def random_euclidean_matrix(n: int, seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    pts = rng.random((n, 2))
    diff = pts[:, None, :] - pts[None, :, :]
    return np.sqrt((diff ** 2).sum(axis=-1))




def grid_euclidean_matrix(n: int, seed: int, scale: float = 1.0) -> np.ndarray:
    """Euclidean distances between cities on the integer grid [0, 4]^2, times `scale`."""
    rng = np.random.default_rng(seed)
    pts = rng.integers(0, 5, size=(n, 2)).astype(float) * scale
    diff = pts[:, None, :] - pts[None, :, :]
    return np.sqrt((diff ** 2).sum(axis=-1))


def near_symmetric_matrix(n: int, seed: int, noise: float = 4e-10) -> np.ndarray:
    """Costs of 1 or 2 with independent off-diagonal noise, asymmetric within 1e-9."""
    rng = np.random.default_rng(seed)
    upper = np.triu(rng.integers(1, 3, size=(n, n)), 1)
    mat = (upper + upper.T).astype(float) + rng.uniform(-noise, noise, size=(n, n))
    np.fill_diagonal(mat, 0.0)
    return mat


def random_start(n: int, seed: int) -> list:
    return [int(c) for c in np.random.default_rng(seed).permutation(n)]


def reference_two_opt(tour, dist):
    """Round-budgeted first-improvement 2-opt with full cost recomputation."""
    n = len(tour)
    best = list(tour)
    for _ in range(n * 25):
        best_cost = tour_length(dist, best)
        for i in range(n - 1):
            found = False
            for k in range(i + 1, n):
                cand = best[:i] + best[i : k + 1][::-1] + best[k + 1 :]
                if tour_length(dist, cand) < best_cost:
                    best = cand
                    found = True
                    break
            if found:
                break
    return best


@pytest.fixture
def unit_square():
    d = math.sqrt(2.0)
    return [
        [0.0, 1.0, d, 1.0],
        [1.0, 0.0, 1.0, d],
        [d, 1.0, 0.0, 1.0],
        [1.0, d, 1.0, 0.0],
    ]


@pytest.fixture
def square_tsp(tmp_path):
    """A 10x10 square as a TSPLIB EUC_2D instance with its optimal tour."""
    path = tmp_path / "square4.tsp"
    path.write_text(
        "NAME : square4\n"
        "TYPE : TSP\n"
        "DIMENSION : 4\n"
        "EDGE_WEIGHT_TYPE : EUC_2D\n"
        "NODE_COORD_SECTION\n"
        "1 0 0\n"
        "2 10 0\n"
        "3 10 10\n"
        "4 0 10\n"
        "EOF\n"
    )
    (tmp_path / "square4.opt.tour").write_text(
        "NAME : square4.opt.tour\n"
        "TYPE : TOUR\n"
        "DIMENSION : 4\n"
        "TOUR_SECTION\n"
        "1\n2\n3\n4\n-1\n"
        "EOF\n"
    )
    return path
