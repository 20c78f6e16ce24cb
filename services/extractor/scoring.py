# services/extractor/scoring.py
"""
Per-attempt scoring state.

Scores live in a ``ScoreTable`` side-table rather than on the nodes, so a
retry that starts from a fresh copy of the page also starts from an empty
table.  Which heuristics are active during an attempt is described by an
immutable ``HeuristicFlags`` value that is passed to every function that
cares.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from bs4 import Tag

from services.extractor import dom, patterns


@dataclass(frozen=True)
class HeuristicFlags:
    strip_unlikely: bool = True
    weight_classes: bool = True
    clean_conditionally: bool = True

    def describe(self) -> str:
        active = [name for name, on in vars(self).items() if on]
        return "+".join(active) or "none"


# Attempts run in this order; each one relaxes one more heuristic
ATTEMPT_FLAGS: Tuple[HeuristicFlags, ...] = (
    HeuristicFlags(True, True, True),
    HeuristicFlags(False, True, True),
    HeuristicFlags(False, False, True),
    HeuristicFlags(False, False, False),
)


def get_class_weight(node: Tag, flags: HeuristicFlags) -> int:
    """+/-25 for each of class and id matching the positive/negative patterns."""
    if not flags.weight_classes:
        return 0
    weight = 0
    for value in (dom.attr_str(node, "class"), dom.attr_str(node, "id")):
        if not value:
            continue
        if patterns.NEGATIVE.search(value):
            weight -= 25
        if patterns.POSITIVE.search(value):
            weight += 25
    return weight


class ScoreTable:
    """
    Content scores keyed by node identity.

    ``initialize`` only ever sets a node's starting score once; later calls
    for the same node are no-ops.
    """

    def __init__(self, flags: HeuristicFlags):
        self.flags = flags
        self._scores: Dict[int, Tuple[Tag, float]] = {}

    def __contains__(self, node: Tag) -> bool:
        return id(node) in self._scores

    def __len__(self) -> int:
        return len(self._scores)

    def __iter__(self) -> Iterator[Tag]:
        return (node for node, _ in self._scores.values())

    def initialize(self, node: Tag) -> None:
        if id(node) in self._scores:
            return
        score = patterns.TAG_BASE_SCORES.get(node.name, 0) + get_class_weight(node, self.flags)
        self._scores[id(node)] = (node, float(score))

    def get(self, node: Tag, default: Optional[float] = None) -> Optional[float]:
        entry = self._scores.get(id(node))
        return entry[1] if entry is not None else default

    def score(self, node: Tag) -> float:
        return self._scores[id(node)][1]

    def set(self, node: Tag, value: float) -> None:
        self._scores[id(node)] = (node, float(value))

    def add(self, node: Tag, delta: float) -> None:
        self.set(node, self.score(node) + delta)

    def transfer(self, old: Tag, new: Tag) -> None:
        """Move the score of *old* to *new* (used when a node is retagged)."""
        entry = self._scores.pop(id(old), None)
        if entry is not None:
            self._scores[id(new)] = (new, entry[1])


class CandidateList:
    """Top-N candidates, highest score first, kept sorted by insertion."""

    def __init__(self, limit: int):
        self.limit = limit
        self.nodes: List[Tag] = []

    def offer(self, node: Tag, scores: ScoreTable) -> None:
        score = scores.score(node)
        for index, candidate in enumerate(self.nodes):
            if score > scores.score(candidate):
                self.nodes.insert(index, node)
                del self.nodes[self.limit:]
                return
        if len(self.nodes) < self.limit:
            self.nodes.append(node)

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index):
        return self.nodes[index]
