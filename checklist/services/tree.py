# checklist/services/tree.py

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from checklist.models.subtask import Subtask, SubtaskNode

logger = logging.getLogger(__name__)


def _cyclic_ids(by_id: Dict[str, Subtask]) -> Set[str]:
    """
    Ids of records sitting on a parent_id loop (A -> B -> A, or A -> A).
    Records that merely hang below a loop are not included.
    """
    cyclic: Set[str] = set()
    for start in by_id:
        chain: List[str] = []
        on_chain: Set[str] = set()
        cur: Optional[str] = start
        while cur is not None and cur in by_id:
            if cur in cyclic:
                break
            if cur in on_chain:
                cyclic.update(chain[chain.index(cur):])
                break
            chain.append(cur)
            on_chain.add(cur)
            cur = by_id[cur].parent_id
    return cyclic


def build_tree(flat: Sequence[Subtask]) -> List[SubtaskNode]:
    """
    Builds the nested view from the flat, position-ordered list.

    1. clone every record into a lookup with empty children
    2. attach each clone to its parent when the parent is known,
       otherwise keep it at root level (orphans included)

    Sibling order follows the order of `flat`. Records on a parent_id
    loop are shown at root level.
    """
    by_id: Dict[str, Subtask] = {s.id: s for s in flat}
    nodes: Dict[str, SubtaskNode] = {
        s.id: SubtaskNode(**s.model_dump(exclude={"children"})) for s in flat
    }

    cyclic = _cyclic_ids(by_id)
    if cyclic:
        logger.warning("Subtask parent loop detected, showing at root: %s", sorted(cyclic))

    roots: List[SubtaskNode] = []
    for s in flat:
        node = nodes[s.id]
        if s.parent_id and s.parent_id in nodes and s.id not in cyclic:
            nodes[s.parent_id].children.append(node)
        else:
            roots.append(node)
    return roots


def flatten_tree(tree: Iterable[SubtaskNode]) -> List[Subtask]:
    """Depth-first pre-order: node first, then its children in order."""
    result: List[Subtask] = []

    def _walk(items: Iterable[SubtaskNode]) -> None:
        for item in items:
            result.append(Subtask(**item.model_dump(exclude={"children"})))
            if item.children:
                _walk(item.children)

    _walk(tree)
    return result


def siblings_of(flat: Sequence[Subtask], parent_id: Optional[str]) -> List[Subtask]:
    if parent_id:
        return [s for s in flat if s.parent_id == parent_id]
    return [s for s in flat if not s.parent_id]


def next_position(flat: Sequence[Subtask], parent_id: Optional[str] = None) -> int:
    siblings = siblings_of(flat, parent_id)
    if not siblings:
        return 0
    return max(s.position or 0 for s in siblings) + 1


def all_completed(flat: Sequence[Subtask]) -> bool:
    return len(flat) > 0 and all(s.is_completed for s in flat)


def progress(flat: Sequence[Subtask]) -> Tuple[int, int]:
    """(completed, total), e.g. the "Subtasks: 2/3" header."""
    done = sum(1 for s in flat if s.is_completed)
    return done, len(flat)
