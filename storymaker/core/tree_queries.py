from __future__ import annotations

"""Read-only queries over a forest of chapter roots.

Parent links are not stored on nodes; they are recomputed by depth-first
search, so every function here takes the chapter list explicitly. Walks use
explicit stacks and never recurse.
"""

from typing import List, Optional, Sequence

from storymaker.core.models import StoryNode

__all__ = [
    "find_parent",
    "find_current_node",
    "find_chapter_index",
    "is_node_valid",
    "is_reachable",
    "is_ancestor",
    "ancestry_chain",
    "format_ancestry",
]

DEFAULT_SEPARATOR = " → "


def find_parent(roots: Sequence[StoryNode], target: StoryNode) -> Optional[StoryNode]:
    """Return the structural parent of ``target`` or None.

    Chapters are searched in order, each depth-first; the first match wins
    if the tree was ever corrupted into a DAG.
    """
    for root in roots:
        stack = [root]
        while stack:
            parent = stack.pop()
            if any(child is target for child in parent.children):
                return parent
            stack.extend(reversed(parent.children))
    return None


def find_current_node(root: StoryNode) -> Optional[StoryNode]:
    """Pre-order search for the first node flagged ``current``."""
    for node in root.iter_depth_first():
        if node.current:
            return node
    return None


def find_chapter_index(roots: Sequence[StoryNode], node: StoryNode) -> Optional[int]:
    """Index of the chapter whose subtree contains ``node``."""
    for idx, root in enumerate(roots):
        if any(candidate is node for candidate in root.iter_depth_first()):
            return idx
    return None


def is_reachable(roots: Sequence[StoryNode], node: StoryNode) -> bool:
    return find_chapter_index(roots, node) is not None


def is_node_valid(roots: Sequence[StoryNode], node: Optional[StoryNode]) -> bool:
    """True if ``node`` is still linked into the live tree.

    Chapter roots have no parent and count as valid while they are still
    listed. Any other node needs a parent whose children still hold it.
    """
    if node is None:
        return False
    if any(root is node for root in roots):
        return True
    parent = find_parent(roots, node)
    if parent is None:
        return False
    return any(child is node for child in parent.children)


def is_ancestor(ancestor: StoryNode, node: StoryNode) -> bool:
    """True if ``node`` lives in the subtree of ``ancestor`` (self included)."""
    return any(candidate is node for candidate in ancestor.iter_depth_first())


def ancestry_chain(roots: Sequence[StoryNode], node: StoryNode) -> List[StoryNode]:
    """Root-to-node path, both endpoints included."""
    chain: List[StoryNode] = [node]
    current = find_parent(roots, node)
    while current is not None:
        chain.insert(0, current)
        current = find_parent(roots, current)
    return chain


def format_ancestry(chain: Sequence[StoryNode], separator: str = DEFAULT_SEPARATOR) -> str:
    return separator.join(node.get_title() for node in chain)
