"""Discovery module: scanning, searching and grouping logical paths."""

from .scanner import PathScanner, scan, to_logical_path, DEFAULT_EXTENSION
from .fuzzy_search import fuzzy_search, fuzzy_score, fuzzy_rank
from .tree_builder import TreeNode, TreeBuilder, build_tree, find_node, iter_forest, sort_nodes

__all__ = [
    "PathScanner",
    "scan",
    "to_logical_path",
    "DEFAULT_EXTENSION",
    "fuzzy_search",
    "fuzzy_score",
    "fuzzy_rank",
    "TreeNode",
    "TreeBuilder",
    "build_tree",
    "find_node",
    "iter_forest",
    "sort_nodes",
]
