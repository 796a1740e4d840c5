"""Enumerate scenario paths through a process structure."""

from __future__ import annotations

import logging
from typing import Dict, List, NamedTuple, Optional

from ..constants import MAX_PATH_LENGTH, MAX_PATHS
from ..contracts import ProcessConnection, ProcessNode, ProcessStructure, StepType
from ..converter import RawStructure, load_process_structure
from .entities import DecisionPoint, PathDiscoveryResult, ScenarioPath

logger = logging.getLogger(__name__)


class _Frame(NamedTuple):
    node_id: str
    path: tuple[str, ...]
    decisions: tuple[DecisionPoint, ...]
    visited: frozenset[str]


class _PathBudgetExhausted(Exception):
    pass


class PathDiscoverer:
    """Bounded depth-first enumeration of entry-to-exit paths.

    Each stack frame carries its own visited set, so a path never repeats a
    node while the same node may still appear on many distinct paths.
    """

    def __init__(
        self,
        structure: ProcessStructure,
        *,
        max_paths: int = MAX_PATHS,
        include_partial_paths: bool = False,
        max_path_length: int = MAX_PATH_LENGTH,
    ) -> None:
        if max_paths < 1:
            raise ValueError("max_paths must be at least 1")
        self.structure = structure
        self.max_paths = max_paths
        self.include_partial_paths = include_partial_paths
        self.max_path_length = max_path_length
        self.nodes: Dict[str, ProcessNode] = structure.node_map()
        self.warnings: List[str] = []
        self.outgoing: Dict[str, List[ProcessConnection]] = {n: [] for n in self.nodes}
        self.incoming: Dict[str, List[ProcessConnection]] = {n: [] for n in self.nodes}
        for conn in structure.connections:
            if conn.source not in self.nodes or conn.target not in self.nodes:
                self.warnings.append(
                    f"Ignoring connection {conn.source} -> {conn.target}: unknown node"
                )
                continue
            self.outgoing[conn.source].append(conn)
            self.incoming[conn.target].append(conn)

        self._paths: List[ScenarioPath] = []
        self._seen_hashes: set[str] = set()
        self._truncated = False
        self._length_capped = False

    # ------------------------------------------------------------------
    # Entry / exit selection
    # ------------------------------------------------------------------
    def find_entry_points(self) -> List[str]:
        candidates = [n for n in self.nodes.values() if not self.incoming[n.id]]
        if not candidates:
            fallback = min(self.nodes.values(), key=lambda n: n.execution_order)
            self.warnings.append(
                f"No entry point without incoming connections; using {fallback.id}"
            )
            return [fallback.id]
        candidates.sort(
            key=lambda n: (n.step_type != StepType.TRIGGER, n.execution_order)
        )
        return [n.id for n in candidates]

    def find_exit_points(self) -> List[str]:
        candidates = [n for n in self.nodes.values() if not self.outgoing[n.id]]
        if not candidates:
            fallback = max(self.nodes.values(), key=lambda n: n.execution_order)
            self.warnings.append(
                f"No exit point without outgoing connections; using {fallback.id}"
            )
            return [fallback.id]
        candidates.sort(key=lambda n: n.execution_order, reverse=True)
        return [n.id for n in candidates]

    def is_decision_point(self, node_id: str) -> bool:
        return len(self.outgoing.get(node_id, ())) > 1

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def discover(self) -> PathDiscoveryResult:
        if not self.nodes:
            return PathDiscoveryResult(warnings=("Process structure has no nodes",))

        entry_points = self.find_entry_points()
        exit_points = self.find_exit_points()
        exits = set(exit_points)

        try:
            for entry in entry_points:
                self._walk(entry, exits)
        except _PathBudgetExhausted:
            self._truncated = True
            self.warnings.append(
                f"Path limit of {self.max_paths} reached; catalogue is incomplete"
            )

        if self._length_capped:
            self.warnings.append(
                f"Abandoned branches longer than {self.max_path_length} steps"
            )

        return PathDiscoveryResult(
            paths=tuple(self._paths),
            entry_points=tuple(entry_points),
            exit_points=tuple(exit_points),
            total_branches=self._count_branches(),
            truncated=self._truncated,
            warnings=tuple(self.warnings),
        )

    def _walk(self, entry: str, exits: set[str]) -> None:
        stack: List[_Frame] = [_Frame(entry, (entry,), (), frozenset((entry,)))]
        while stack:
            frame = stack.pop()
            outgoing = self.outgoing[frame.node_id]

            if frame.node_id in exits or not outgoing:
                self._record(frame)
                continue
            if len(frame.path) >= self.max_path_length:
                self._length_capped = True
                continue

            branching = self.is_decision_point(frame.node_id)
            children: List[_Frame] = []
            for conn in outgoing:
                if conn.target in frame.visited:
                    continue
                decisions = frame.decisions
                if branching and conn.label:
                    decisions = decisions + (
                        DecisionPoint(
                            node_id=frame.node_id,
                            condition=conn.label,
                            next_node_id=conn.target,
                        ),
                    )
                children.append(
                    _Frame(
                        conn.target,
                        frame.path + (conn.target,),
                        decisions,
                        frame.visited | {conn.target},
                    )
                )

            if not children:
                if self.include_partial_paths:
                    self._record(frame, partial=True)
                continue
            # first declared connection is explored first
            stack.extend(reversed(children))

    def _record(self, frame: _Frame, partial: bool = False) -> None:
        path = ScenarioPath(
            step_ids=frame.path, decisions=frame.decisions, partial=partial
        )
        if path.path_hash in self._seen_hashes:
            return
        if len(self._paths) >= self.max_paths:
            raise _PathBudgetExhausted()
        self._seen_hashes.add(path.path_hash)
        self._paths.append(path)

    def _count_branches(self) -> int:
        branch_nodes = {d.node_id for p in self._paths for d in p.decisions}
        branch_nodes.update(n for n in self.nodes if self.is_decision_point(n))
        return len(branch_nodes)


def discover_paths(
    structure: RawStructure,
    *,
    max_paths: Optional[int] = None,
    include_partial_paths: bool = False,
) -> PathDiscoveryResult:
    """Discover entry points, exit points and distinct paths of ``structure``."""

    structure = load_process_structure(structure)
    discoverer = PathDiscoverer(
        structure,
        max_paths=MAX_PATHS if max_paths is None else max_paths,
        include_partial_paths=include_partial_paths,
    )
    result = discoverer.discover()
    logger.debug(
        f"Discovered {len(result.paths)} paths from {len(result.entry_points)} "
        f"entry points (truncated={result.truncated})"
    )
    return result
