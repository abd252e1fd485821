"""
Tree Builder
============

Groups flat logical paths into a folder/file hierarchy for navigation.

Nodes are collected into one flat map keyed by full path, then linked
to their parents in a single pass. A tree is rebuilt from scratch after
every catalog or filesystem change; nodes are never re-parented.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

from lora_catalog.discovery.scanner import PathScanner
from lora_catalog.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class TreeNode:
    """A folder or file in the navigation tree.

    Attributes:
        name: Last path segment, shown to the user.
        path: Full logical path (folder prefix for folders).
        is_file: True for model files, False for folders.
        children: Ordered child nodes; always empty for files.
    """
    name: str
    path: str
    is_file: bool = False
    children: List["TreeNode"] = field(default_factory=list)

    @property
    def parent_path(self) -> str:
        """Logical path of the parent folder, "" for top-level nodes."""
        return self.path.rpartition("/")[0]

    def walk(self) -> Iterator["TreeNode"]:
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict:
        """Convert to a nested dictionary."""
        return {
            "name": self.name,
            "path": self.path,
            "is_file": self.is_file,
            "children": [child.to_dict() for child in self.children],
        }


def sort_nodes(nodes: List[TreeNode]) -> None:
    """Sort nodes in place, recursively: folders first, then by name.

    Names compare by code point, not by locale.
    """
    nodes.sort(key=lambda node: (node.is_file, node.name))
    for node in nodes:
        if node.children:
            sort_nodes(node.children)


class TreeBuilder:
    """Builds the navigation forest from logical paths and on-disk folders."""

    def __init__(self, scanner: Optional[PathScanner] = None):
        """Initialize the builder.

        Args:
            scanner: Scanner used to list folders present on disk.
        """
        self.scanner = scanner or PathScanner()

    def build(
        self,
        paths: Iterable[str],
        root_dir: Optional[Union[str, Path]] = None
    ) -> List[TreeNode]:
        """Build a sorted forest.

        Args:
            paths: Logical paths of model files.
            root_dir: Models directory. Every folder below it is included,
                empty ones too. Skipped when None or missing.

        Returns:
            Top-level nodes, sorted recursively.
        """
        file_paths = set(paths)
        nodes: Dict[str, TreeNode] = {}

        if root_dir is not None:
            for folder in self.scanner.scan_directories(root_dir):
                self._add_chain(folder, nodes, file_paths)

        for path in file_paths:
            self._add_chain(path, nodes, file_paths)

        roots: List[TreeNode] = []
        for path in sorted(nodes):
            node = nodes[path]
            parent_path = node.parent_path
            if not parent_path:
                roots.append(node)
                continue
            parent = nodes.get(parent_path)
            if parent is not None:
                parent.children.append(node)

        sort_nodes(roots)
        logger.debug(f"Built tree: {len(nodes)} nodes, {len(roots)} top-level")
        return roots

    @staticmethod
    def _add_chain(path: str, nodes: Dict[str, TreeNode], file_paths: set) -> None:
        """Add ``path`` and every ancestor prefix to the flat map."""
        parts = [part for part in path.split("/") if part]
        prefix = ""
        for index, part in enumerate(parts):
            prefix = f"{prefix}/{part}" if prefix else part
            if prefix in nodes:
                continue
            is_leaf = index == len(parts) - 1
            nodes[prefix] = TreeNode(
                name=part,
                path=prefix,
                is_file=is_leaf and prefix in file_paths,
            )


def build_tree(
    paths: Iterable[str],
    root_dir: Optional[Union[str, Path]] = None
) -> List[TreeNode]:
    """Build a navigation forest; see :meth:`TreeBuilder.build`."""
    return TreeBuilder().build(paths, root_dir)


def find_node(forest: List[TreeNode], path: str) -> Optional[TreeNode]:
    """Locate the node for ``path`` by walking its segments from the top."""
    current: Optional[TreeNode] = None
    level = forest
    for part in path.split("/"):
        current = next((node for node in level if node.name == part), None)
        if current is None:
            return None
        level = current.children
    return current


def iter_forest(forest: List[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node of the forest, depth first in display order."""
    for node in forest:
        yield from node.walk()
