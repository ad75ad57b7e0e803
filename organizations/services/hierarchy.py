"""
Organization hierarchy resolution.

Tree paths such as ``/1/L1-001/L2-003/`` are loaded into an explicit arena of
segment nodes (parent index plus child indices). Descendant queries walk the
arena, so callers never depend on how the paths are stored.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

ROOT_PATH = "/"


def normalize_tree_path(tree_path) -> Optional[str]:
    """
    Return ``tree_path`` in canonical ``/a/b/`` form, or None if it is malformed.

    A path must be a string starting with ``/`` and must not contain empty
    segments. The trailing slash is optional on input.
    """
    if not isinstance(tree_path, str):
        return None
    path = tree_path.strip()
    if not path.startswith(ROOT_PATH):
        return None
    if path == ROOT_PATH:
        return ROOT_PATH
    if not path.endswith("/"):
        path += "/"
    if "//" in path:
        return None
    return path


def split_tree_path(tree_path: str) -> List[str]:
    return [segment for segment in tree_path.strip("/").split("/") if segment]


class _Node:
    __slots__ = ("segment", "parent", "children", "organization_ids")

    def __init__(self, segment: str, parent: Optional[int]):
        self.segment = segment
        self.parent = parent
        self.children: Dict[str, int] = {}
        self.organization_ids: Set[int] = set()


class OrganizationTree:
    """
    Arena-backed organization tree.

    Node 0 is the wildcard root ``/``. Every other node is one path segment and
    keeps the index of its parent and the indices of its children. Organizations
    are attached to the node that ends their tree path.
    """

    def __init__(self):
        self._nodes: List[_Node] = [_Node(segment="", parent=None)]

    @classmethod
    def from_paths(cls, organization_paths: Iterable[Tuple[int, str]]) -> "OrganizationTree":
        tree = cls()
        for organization_id, tree_path in organization_paths:
            tree.add(organization_id, tree_path)
        return tree

    def __len__(self):
        return len(self._nodes) - 1

    def add(self, organization_id: int, tree_path: str) -> bool:
        """Attach an organization at ``tree_path``. Malformed paths are skipped."""
        path = normalize_tree_path(tree_path)
        if path is None:
            logger.warning(f"Skipping organization {organization_id} with malformed tree path {tree_path!r}")
            return False

        index = 0
        for segment in split_tree_path(path):
            child = self._nodes[index].children.get(segment)
            if child is None:
                child = len(self._nodes)
                self._nodes.append(_Node(segment=segment, parent=index))
                self._nodes[index].children[segment] = child
            index = child
        self._nodes[index].organization_ids.add(organization_id)
        return True

    def _find(self, path: str) -> Optional[int]:
        index = 0
        for segment in split_tree_path(path):
            index = self._nodes[index].children.get(segment)
            if index is None:
                return None
        return index

    def path_of(self, index: int) -> str:
        segments = []
        while index:
            node = self._nodes[index]
            segments.append(node.segment)
            index = node.parent
        if not segments:
            return ROOT_PATH
        return "/" + "/".join(reversed(segments)) + "/"

    def descendants(self, tree_path) -> Set[int]:
        """
        Every organization whose path equals or extends ``tree_path``.

        Empty or malformed input yields an empty set.
        """
        path = normalize_tree_path(tree_path)
        if path is None:
            return set()
        start = self._find(path)
        if start is None:
            return set()

        found: Set[int] = set()
        stack = [start]
        while stack:
            node = self._nodes[stack.pop()]
            found.update(node.organization_ids)
            stack.extend(node.children.values())
        return found

    def child_count(self, tree_path) -> int:
        """Number of organizations attached directly below ``tree_path``."""
        path = normalize_tree_path(tree_path)
        if path is None:
            return 0
        start = self._find(path)
        if start is None:
            return 0
        count = 0
        for child in self._nodes[start].children.values():
            node = self._nodes[child]
            if node.organization_ids:
                count += len(node.organization_ids)
            else:
                # Intermediate segment without its own organization; look through it
                count += self.child_count(self.path_of(child))
        return count


def resolve_descendants(source, headquarters_id: int, tree_path) -> Set[int]:
    """
    Resolve the descendant organization ids of ``tree_path`` within one headquarters.

    Args:
        source: Object exposing ``list_organization_paths(headquarters_id)``
        headquarters_id: Tenant the organizations belong to
        tree_path: Path prefix, or ``/`` for the whole headquarters

    Returns:
        Set of organization ids (the owner of ``tree_path`` included, if known)
    """
    if normalize_tree_path(tree_path) is None:
        logger.debug(f"Empty descendant set for malformed path {tree_path!r}")
        return set()
    tree = OrganizationTree.from_paths(source.list_organization_paths(headquarters_id))
    descendants = tree.descendants(tree_path)
    logger.debug(
        f"Resolved {len(descendants)} organizations under {tree_path} for headquarters {headquarters_id} "
        f"({len(tree)} path segments)"
    )
    return descendants
