import math
import time
from typing import Dict, List, Optional

from .solvers.base import SolveResult, Solver, tour_length, validate_matrix


def evaluate_solver(solver: Solver, matrix, optimum: Optional[float] = None) -> SolveResult:
    tol = solver.config.symmetry_tol if hasattr(solver, "config") else 1e-9
    dist = validate_matrix(matrix, tol)
    start = time.perf_counter()
    tour = solver.solve(dist)
    runtime = time.perf_counter() - start
    return SolveResult(
        tour=tour,
        length=tour_length(dist, tour),
        solver_name=solver.name,
        optimum=optimum,
        runtime=runtime,
    )


def aggregate_results(results: List[SolveResult]) -> Dict[str, float]:
    if not results:
        return {"length": float("inf"), "gap": float("inf"), "runtime": float("inf")}
    length = sum(r.length for r in results) / len(results)
    gaps = [r.gap for r in results if not math.isinf(r.gap)]
    gap = sum(gaps) / len(gaps) if gaps else float("inf")
    runtime = sum(r.runtime for r in results) / len(results)
    return {"length": length, "gap": gap, "runtime": runtime}
