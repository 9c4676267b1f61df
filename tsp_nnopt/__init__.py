"""
Multi-start nearest neighbour construction and 2-opt improvement for the symmetric TSP.
"""

from .solvers import InvalidInputError, SolverConfig, construct, improve, tour_length

__all__ = [
    "InvalidInputError",
    "SolverConfig",
    "construct",
    "improve",
    "tour_length",
    "cli",
    "data",
    "evaluation",
]
