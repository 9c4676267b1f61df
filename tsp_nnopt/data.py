import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import networkx as nx
import numpy as np
import tsplib95

from .solvers.base import validate_matrix


logger = logging.getLogger(__name__)


@dataclass
class Instance:
    name: str
    path: Path
    matrix: np.ndarray
    optimum: Optional[float]

    @property
    def size(self) -> int:
        return int(self.matrix.shape[0])


def matrix_from_graph(graph: nx.Graph) -> np.ndarray:
    """
    Dense distance matrix of a weighted graph, rows and columns in sorted node
    order. Absent edges become inf so validation rejects incomplete graphs.
    """
    nodes = sorted(graph.nodes())
    mat = nx.to_numpy_array(graph, nodelist=nodes, weight="weight", nonedge=np.inf)
    return validate_matrix(mat)


def _solution_candidates(path: Path) -> Iterable[Path]:
    yield path.with_suffix(".opt.tour")
    for ext in (".opt.tour", ".opt", ".tour"):
        yield path.parent / "solutions" / f"{path.stem}{ext}"


def _read_dimension(path: Path) -> Optional[int]:
    with path.open("r") as f:
        for line in f:
            if "DIMENSION" in line.upper():
                parts = line.replace(":", " ").split()
                for token in parts:
                    if token.isdigit():
                        return int(token)
    return None


def _load_optimum(problem, path: Path) -> Optional[float]:
    for candidate in _solution_candidates(path):
        if not candidate.exists():
            continue
        tour_file = tsplib95.parse(candidate.read_text())
        if not tour_file.tours:
            logger.debug("no TOUR_SECTION in %s", candidate)
            continue
        nodes = list(tour_file.tours[0])
        dist = 0.0
        for i in range(len(nodes)):
            a = nodes[i]
            b = nodes[(i + 1) % len(nodes)]
            dist += problem.get_weight(a, b)
        return float(dist)
    return None


def load_instance(path: Path) -> Instance:
    path = Path(path)
    problem = tsplib95.load(path)
    matrix = matrix_from_graph(problem.get_graph())
    optimum = _load_optimum(problem, path)
    name = problem.name or path.stem
    logger.debug("loaded %s: n=%d optimum=%s", name, matrix.shape[0], optimum)
    return Instance(name=name, path=path, matrix=matrix, optimum=optimum)


def load_tsplib_instances(
    root: Path, max_nodes: Optional[int] = None, max_instances: Optional[int] = None
) -> List[Instance]:
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Data directory {root} does not exist.")
    instances: List[Instance] = []
    for p in sorted(root.glob("*.tsp")):
        if max_nodes is not None:
            dim = _read_dimension(p)
            if dim is not None and dim > max_nodes:
                logger.debug("skipping %s: dimension %d > %d", p.name, dim, max_nodes)
                continue
        instances.append(load_instance(p))
        if max_instances is not None and len(instances) >= max_instances:
            break
    return instances
