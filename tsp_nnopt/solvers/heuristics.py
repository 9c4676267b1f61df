import logging
import math
from typing import List, Optional, Tuple

import numpy as np
import torch

from .base import (
    Solver,
    SolverConfig,
    Tour,
    max_asymmetry,
    tour_length,
    validate_matrix,
    validate_tour,
)


logger = logging.getLogger(__name__)

_EPS = float(np.finfo(np.float64).eps)


def nearest_neighbor_tour(dist: List[List[float]], start: int) -> Tuple[Tour, float]:
    n = len(dist)
    visited = [False] * n
    visited[start] = True
    tour = [start]
    cost = 0.0
    current = start
    for _ in range(n - 1):
        row = dist[current]
        nxt = -1
        nxt_cost = math.inf
        for city in range(n):
            if not visited[city] and row[city] < nxt_cost:
                nxt_cost = row[city]
                nxt = city
        cost += nxt_cost
        visited[nxt] = True
        tour.append(nxt)
        current = nxt
    if n > 1:
        cost += dist[start][current]
    return tour, cost


def construct(matrix, config: Optional[SolverConfig] = None) -> Tour:
    """
    Multi-start nearest neighbour: run the greedy construction from every city
    and keep the cheapest closed tour. Ties go to the lowest starting city.
    """
    cfg = config or SolverConfig()
    dist = validate_matrix(matrix, cfg.symmetry_tol).tolist()
    best_tour: Tour = []
    best_cost = math.inf
    best_start = -1
    for start in range(len(dist)):
        tour, cost = nearest_neighbor_tour(dist, start)
        if cost < best_cost:
            best_tour, best_cost, best_start = tour, cost, start
    logger.debug("nearest neighbour: n=%d best start=%d cost=%.6g", len(dist), best_start, best_cost)
    return best_tour


def reverse_segment(tour: Tour, i: int, k: int) -> Tour:
    return tour[:i] + tour[i : k + 1][::-1] + tour[k + 1 :]


def two_opt_delta(dist: List[List[float]], tour: Tour, i: int, k: int) -> float:
    # Four-edge change in cycle cost from reversing tour[i..k]. Exact only for a
    # symmetric matrix in exact arithmetic; moves are decided on the full cost.
    n = len(tour)
    if i == 0 and k == n - 1:
        return 0.0
    a = tour[i]
    b = tour[k]
    prev = tour[i - 1]
    nxt = tour[(k + 1) % n]
    return (dist[prev][b] + dist[a][nxt]) - (dist[prev][a] + dist[b][nxt])


def _delta_band(n: int, best_cost, delta, asym: float):
    # Upper bound on how far the four-edge delta can sit above a reversal that the
    # full recomputation still sees as cheaper: rounding in both n-term sums plus
    # the direction flip of every edge inside the segment. Works on floats and tensors.
    return n * (2.0 * asym + 4.0 * _EPS * (2.0 * best_cost + abs(delta)))


def first_improving_move(
    dist: List[List[float]], tour: Tour, asym: Optional[float] = None
) -> Optional[Tuple[int, int]]:
    """
    First (i, k) in ascending scan order whose reversal has a strictly lower
    `tour_length` than `tour`. The delta only skips reversals that cannot pass
    that comparison. `asym` is the matrix's largest asymmetry, computed when omitted.
    """
    if asym is None:
        asym = max_asymmetry(np.asarray(dist, dtype=np.float64))
    n = len(tour)
    best_cost = tour_length(dist, tour)
    for i in range(n - 1):
        for k in range(i + 1, n):
            delta = two_opt_delta(dist, tour, i, k)
            if delta > _delta_band(n, best_cost, delta, asym):
                continue
            if tour_length(dist, reverse_segment(tour, i, k)) < best_cost:
                return i, k
    return None


def improve(tour, matrix, config: Optional[SolverConfig] = None) -> Tour:
    """
    First-improvement 2-opt with a budget of `n * rounds_per_city` rounds.

    Each round takes the first segment reversal (ascending i, then ascending k)
    whose recomputed tour cost is strictly lower. A round without such a move is a
    fixed point, so stopping there (`early_exit`) returns the same tour as
    spending the budget.
    """
    cfg = config or SolverConfig()
    arr = validate_matrix(matrix, cfg.symmetry_tol)
    best = validate_tour(tour, arr.shape[0])
    asym = max_asymmetry(arr)
    dist = arr.tolist()
    n = len(best)
    max_rounds = n * cfg.rounds_per_city
    moves = 0
    rounds = 0
    for rounds in range(1, max_rounds + 1):
        move = first_improving_move(dist, best, asym)
        if move is None:
            if cfg.early_exit:
                break
            continue
        best = reverse_segment(best, *move)
        moves += 1
    logger.debug(
        "2-opt: n=%d rounds=%d/%d moves=%d length=%.6g",
        n,
        rounds,
        max_rounds,
        moves,
        tour_length(dist, best),
    )
    return best


def _device(cfg: SolverConfig) -> torch.device:
    return torch.device(cfg.device or "cpu")


def torch_construct(matrix, config: Optional[SolverConfig] = None) -> Tour:
    # All starts advance together: row s of `visited`/`tours` belongs to start s.
    cfg = config or SolverConfig()
    arr = validate_matrix(matrix, cfg.symmetry_tol)
    device = _device(cfg)
    dist = torch.as_tensor(arr, dtype=torch.float64, device=device)
    n = dist.shape[0]
    starts = torch.arange(n, device=device)
    visited = torch.zeros((n, n), dtype=torch.bool, device=device)
    visited[starts, starts] = True
    tours = torch.empty((n, n), dtype=torch.long, device=device)
    tours[:, 0] = starts
    costs = torch.zeros(n, dtype=torch.float64, device=device)
    inf = torch.tensor(math.inf, dtype=torch.float64, device=device)
    current = starts
    for step in range(1, n):
        rows = torch.where(visited, inf, dist[current])
        nxt = torch.argmin(rows, dim=1)
        costs += rows[starts, nxt]
        visited[starts, nxt] = True
        tours[:, step] = nxt
        current = nxt
    if n > 1:
        costs += dist[starts, current]
    best = int(torch.argmin(costs).item())
    logger.debug("torch nearest neighbour: n=%d best start=%d cost=%.6g", n, best, costs[best].item())
    return tours[best].tolist()


def torch_improve(tour, matrix, config: Optional[SolverConfig] = None) -> Tour:
    # Deltas for every pair are screened at once on the device; the surviving
    # pairs are confirmed in scan order with the same full cost as `improve`.
    cfg = config or SolverConfig()
    arr = validate_matrix(matrix, cfg.symmetry_tol)
    best = validate_tour(tour, arr.shape[0])
    n = len(best)
    if n < 2:
        return best
    asym = max_asymmetry(arr)
    rows = arr.tolist()
    device = _device(cfg)
    dist = torch.as_tensor(arr, dtype=torch.float64, device=device)
    # Row-major pairs match the sequential (i, k) scan order.
    i_idx, k_idx = torch.triu_indices(n, n, offset=1, device=device)
    whole = (i_idx == 0) & (k_idx == n - 1)
    prev_pos = (i_idx - 1) % n
    next_pos = (k_idx + 1) % n
    pairs = list(zip(i_idx.tolist(), k_idx.tolist()))
    max_rounds = n * cfg.rounds_per_city
    moves = 0
    for _ in range(max_rounds):
        cur = torch.tensor(best, dtype=torch.long, device=device)
        a = cur[i_idx]
        b = cur[k_idx]
        prev = cur[prev_pos]
        nxt = cur[next_pos]
        delta = (dist[prev, b] + dist[a, nxt]) - (dist[prev, a] + dist[b, nxt])
        delta = delta.masked_fill(whole, 0.0)
        best_cost = tour_length(rows, best)
        screened = torch.nonzero(delta <= _delta_band(n, best_cost, delta, asym)).flatten().tolist()
        move = None
        for j in screened:
            cand = reverse_segment(best, *pairs[j])
            if tour_length(rows, cand) < best_cost:
                move = cand
                break
        if move is None:
            if cfg.early_exit:
                break
            continue
        best = move
        moves += 1
    logger.debug("torch 2-opt: n=%d moves=%d", n, moves)
    return best


class NearestNeighborSolver(Solver):
    name = "nearest_neighbor"

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()

    def solve(self, matrix) -> Tour:
        if self.config.backend == "torch":
            return torch_construct(matrix, self.config)
        return construct(matrix, self.config)


class TwoOptSolver(Solver):
    """
    Solver built from two phases: multi-start nearest neighbour, then 2-opt.
    Runs on plain Python lists or, with backend="torch", on tensors.
    """

    name = "nn_two_opt"

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()

    def solve(self, matrix) -> Tour:
        if self.config.backend == "torch":
            base = torch_construct(matrix, self.config)
            return torch_improve(base, matrix, self.config)
        base = construct(matrix, self.config)
        return improve(base, matrix, self.config)
