from .base import (
    BACKENDS,
    InvalidInputError,
    Solver,
    SolverConfig,
    SolveResult,
    Tour,
    max_asymmetry,
    tour_length,
    validate_matrix,
    validate_tour,
)
from .heuristics import (
    NearestNeighborSolver,
    TwoOptSolver,
    construct,
    first_improving_move,
    improve,
    nearest_neighbor_tour,
    reverse_segment,
    torch_construct,
    torch_improve,
    two_opt_delta,
)

__all__ = [
    "BACKENDS",
    "InvalidInputError",
    "Solver",
    "SolverConfig",
    "SolveResult",
    "Tour",
    "max_asymmetry",
    "tour_length",
    "validate_matrix",
    "validate_tour",
    "NearestNeighborSolver",
    "TwoOptSolver",
    "construct",
    "first_improving_move",
    "improve",
    "nearest_neighbor_tour",
    "reverse_segment",
    "torch_construct",
    "torch_improve",
    "two_opt_delta",
]
