import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from tsp_nnopt.data import load_instance, load_tsplib_instances
from tsp_nnopt.evaluation import aggregate_results, evaluate_solver
from tsp_nnopt.solvers import (
    BACKENDS,
    NearestNeighborSolver,
    Solver,
    SolverConfig,
    TwoOptSolver,
)


def log(msg: str) -> None:
    ts = time.strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def build_solver(args) -> Solver:
    cfg = SolverConfig(
        rounds_per_city=args.rounds_per_city,
        backend=args.backend,
        device=args.device,
    )
    if args.construct_only:
        return NearestNeighborSolver(cfg)
    return TwoOptSolver(cfg)


def _format_gap(gap: float) -> str:
    return "n/a" if gap == float("inf") else f"{gap * 100:.2f}%"


def solve(args) -> None:
    instance = load_instance(Path(args.path))
    solver = build_solver(args)
    result = evaluate_solver(solver, instance.matrix, instance.optimum)
    if args.json:
        payload = {
            "name": instance.name,
            "solver": result.solver_name,
            "tour": result.tour,
            "length": result.length,
            "optimum": result.optimum,
            "runtime": result.runtime,
        }
        print(json.dumps(payload))
        return
    log(f"{instance.name}: n={instance.size} solver={result.solver_name} backend={args.backend}")
    print(" ".join(str(c) for c in result.tour))
    print(f"length={result.length:.4f} gap={_format_gap(result.gap)} runtime={result.runtime:.3f}s")


def bench(args) -> None:
    t0 = time.perf_counter()
    data_root = Path(args.data_root)
    log(f"loading data from {data_root}")
    instances = load_tsplib_instances(data_root, max_nodes=args.max_nodes)
    if not instances:
        raise RuntimeError(
            f"No TSPLIB instances found in {data_root}. "
            "Place .tsp (and optional .opt.tour) files there before running."
        )
    log(f"loaded {len(instances)} instances in {time.perf_counter() - t0:.2f}s")
    solver = build_solver(args)
    results = []
    for inst in instances:
        result = evaluate_solver(solver, inst.matrix, inst.optimum)
        results.append(result)
        print(
            f"{inst.name:>16} n={inst.size:<5} length={result.length:12.2f} "
            f"gap={_format_gap(result.gap):>8} runtime={result.runtime:.3f}s"
        )
    agg = aggregate_results(results)
    log(
        f"{solver.name}: mean length={agg['length']:.2f} mean gap={_format_gap(agg['gap'])} "
        f"mean runtime={agg['runtime']:.3f}s"
    )


def _add_solver_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--backend", choices=BACKENDS, default="python")
    parser.add_argument("--device", default=None, help="torch device, e.g. cuda:0")
    parser.add_argument("--rounds-per-city", type=int, default=25)
    parser.add_argument("--construct-only", action="store_true", help="Skip 2-opt improvement")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="TSP nearest neighbour + 2-opt CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    solve_parser = subparsers.add_parser("solve", help="Solve a single TSPLIB instance")
    solve_parser.add_argument("path")
    solve_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    _add_solver_args(solve_parser)
    solve_parser.set_defaults(func=solve)

    bench_parser = subparsers.add_parser("bench", help="Solve every instance in a directory")
    bench_parser.add_argument("--data-root", default="data/tsplib")
    bench_parser.add_argument("--max-nodes", type=int, default=None)
    _add_solver_args(bench_parser)
    bench_parser.set_defaults(func=bench)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    try:
        args.func(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
