"""
Document Tree Builder.

Builds the hierarchical sidebar tree from the flat listing returned by
the pull API. Folders are synthesized from shared path prefixes.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .document_loader import DocumentRef


@dataclass
class TreeNode:
    """
    A node in the document tree.

    Attributes:
        name: Last path segment.
        path: Full store-relative path; for leaves this is the
              originating DocumentRef path verbatim.
        is_container: True for synthesized folders.
        children: Child nodes for folders, None for leaves.
    """
    name: str
    path: str
    is_container: bool
    children: Optional[List["TreeNode"]] = None


def sort_key(name: str) -> Tuple[str, str]:
    """Case-insensitive ordering with lowercase first on ties."""
    return (name.casefold(), name.swapcase())


def build_tree(refs: Iterable[DocumentRef]) -> List[TreeNode]:
    """
    Build a sorted tree from a flat document listing.

    Containers come before leaves at every level, each group ordered by
    name. Sorting happens once the whole tree is assembled, so the
    listing order never affects the result.
    """
    root = TreeNode(name="", path="", is_container=True, children=[])
    index: Dict[str, TreeNode] = {"": root}

    for ref in refs:
        parts = ref.path.split("/")
        parent = root
        prefix = ""

        for part in parts[:-1]:
            prefix = f"{prefix}/{part}" if prefix else part
            folder = index.get(prefix)
            if folder is None:
                folder = TreeNode(name=part, path=prefix, is_container=True, children=[])
                index[prefix] = folder
                parent.children.append(folder)
            parent = folder

        parent.children.append(
            TreeNode(name=parts[-1], path=ref.path, is_container=False)
        )

    return _sort_nodes(root.children)


def _sort_nodes(nodes: List[TreeNode]) -> List[TreeNode]:
    folders = sorted((n for n in nodes if n.is_container), key=lambda n: sort_key(n.name))
    leaves = sorted((n for n in nodes if not n.is_container), key=lambda n: sort_key(n.name))

    for folder in folders:
        folder.children = _sort_nodes(folder.children or [])

    return folders + leaves


def iter_leaves(nodes: List[TreeNode]) -> Iterable[TreeNode]:
    """Yield leaf nodes depth-first in display order."""
    for node in nodes:
        if node.is_container:
            yield from iter_leaves(node.children or [])
        else:
            yield node


def first_document_path(refs: Iterable[DocumentRef]) -> str:
    """Path of the first document in tree order, or "" for an empty listing."""
    for leaf in iter_leaves(build_tree(refs)):
        return leaf.path
    return ""


__all__ = [
    "TreeNode",
    "build_tree",
    "iter_leaves",
    "first_document_path",
    "sort_key",
]
