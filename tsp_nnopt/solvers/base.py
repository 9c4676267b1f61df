import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import torch


Tour = List[int]

BACKENDS = ("python", "torch")


class InvalidInputError(ValueError):
    """Raised when a distance matrix or tour is malformed or inconsistent."""


@dataclass
class SolverConfig:
    rounds_per_city: int = 25
    early_exit: bool = True
    backend: str = "python"
    device: Optional[str] = None
    symmetry_tol: float = 1e-9

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend {self.backend!r}; expected one of {BACKENDS}.")
        if self.rounds_per_city < 0:
            raise ValueError("rounds_per_city must be non-negative.")
        if self.symmetry_tol < 0:
            raise ValueError("symmetry_tol must be non-negative.")


def validate_matrix(matrix, symmetry_tol: float = 1e-9) -> np.ndarray:
    """
    Check that `matrix` is a usable symmetric distance matrix and return it as a
    float64 array. Diagonal entries are never read and are not checked.
    """
    if torch.is_tensor(matrix):
        matrix = matrix.detach().cpu().numpy()
    try:
        raw = np.asarray(matrix)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Distance matrix is not numeric and rectangular: {exc}") from exc
    if raw.dtype.kind not in "iuf":
        raise InvalidInputError(f"Distance matrix must hold numeric costs, got dtype {raw.dtype}.")
    arr = raw.astype(np.float64)
    if arr.size == 0:
        raise InvalidInputError("Distance matrix is empty.")
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise InvalidInputError(f"Distance matrix must be square, got shape {arr.shape}.")
    n = arr.shape[0]
    off = ~np.eye(n, dtype=bool)
    values = arr[off]
    if not np.all(np.isfinite(values)):
        raise InvalidInputError("Distance matrix has non-finite entries off the diagonal.")
    if np.any(values < 0):
        raise InvalidInputError("Distance matrix has negative entries off the diagonal.")
    if not np.allclose(values, arr.T[off], rtol=symmetry_tol, atol=symmetry_tol):
        raise InvalidInputError("Distance matrix is not symmetric.")
    return arr


def max_asymmetry(arr: np.ndarray) -> float:
    """Largest |d[i][j] - d[j][i]| off the diagonal of a validated matrix."""
    n = arr.shape[0]
    if n < 2:
        return 0.0
    off = ~np.eye(n, dtype=bool)
    return float(np.abs(arr - arr.T)[off].max())


def validate_tour(tour, n: int) -> Tour:
    if torch.is_tensor(tour):
        tour = tour.tolist()
    try:
        cities = list(tour)
    except TypeError as exc:
        raise InvalidInputError(f"Tour is not a sequence: {exc}") from exc
    for city in cities:
        if isinstance(city, (bool, np.bool_)) or not isinstance(city, (int, np.integer)):
            raise InvalidInputError(f"Tour contains a non-integer city {city!r}.")
    cities = [int(c) for c in cities]
    if len(cities) != n or sorted(cities) != list(range(n)):
        raise InvalidInputError(f"Tour is not a permutation of 0..{n - 1}.")
    return cities


def tour_length(dist, tour: Sequence[int]) -> float:
    n = len(tour)
    if n < 2:
        return 0.0
    total = dist[tour[0]][tour[n - 1]]
    for k in range(n - 1):
        total += dist[tour[k]][tour[k + 1]]
    return float(total)


class Solver(ABC):
    name: str = "base"

    @abstractmethod
    def solve(self, matrix) -> Tour:
        raise NotImplementedError


@dataclass
class SolveResult:
    tour: Tour
    length: float
    solver_name: str
    optimum: Optional[float] = None
    runtime: float = 0.0

    @property
    def gap(self) -> float:
        if self.optimum is None or math.isclose(self.optimum, 0.0):
            return float("inf")
        return (self.length - self.optimum) / self.optimum
