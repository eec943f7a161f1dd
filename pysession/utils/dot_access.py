"""
Dotted-path access over nested attribute trees.

The session attribute tree is a plain ``dict`` whose values are JSON-compatible
(scalars, lists, nested dicts). A path such as ``"a.b.c"`` addresses
``tree["a"]["b"]["c"]``; list elements can be addressed by a numeric segment.
"""

from typing import Any, Dict, List, Union


class _Missing:
    """Sentinel for an undefined path (distinct from a stored ``None``)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def _split(path: str) -> List[str]:
    return path.split(".")


def _step(node: Any, segment: str) -> Any:
    if isinstance(node, dict):
        return node.get(segment, MISSING)
    if isinstance(node, list) and segment.isdigit():
        index = int(segment)
        if index < len(node):
            return node[index]
    return MISSING


def get_path(tree: Dict[str, Any], path: str, default: Any = MISSING) -> Any:
    """
    Resolve a dotted path.

    Args:
        tree: Attribute tree
        path: Dotted path, e.g. ``"flash.new"``
        default: Returned when any segment is undefined

    Returns:
        The addressed value or ``default``
    """
    node: Any = tree
    for segment in _split(path):
        node = _step(node, segment)
        if node is MISSING:
            return default
    return node


def define_member(tree: Dict[str, Any], path: str) -> Dict[str, Any]:
    """
    Ensure every parent of ``path`` exists as a mapping.

    Intermediate values that are missing or are not mappings are replaced
    with empty dicts. Returns the direct parent container of the leaf.
    """
    node = tree
    for segment in _split(path)[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            child = {}
            node[segment] = child
        node = child
    return node


def set_path(tree: Dict[str, Any], path: str, value: Any) -> None:
    """Assign ``value`` at ``path``, creating intermediate mappings."""
    segments = _split(path)
    node: Any = tree
    for segment in segments[:-1]:
        child = _step(node, segment)
        if not isinstance(child, (dict, list)):
            # Traversal failed, rebuild the parents as mappings.
            node = define_member(tree, path)
            break
        node = child

    leaf = segments[-1]
    if isinstance(node, list):
        if leaf.isdigit() and int(leaf) < len(node):
            node[int(leaf)] = value
            return
        node = define_member(tree, path)
    node[leaf] = value


def delete_path(tree: Dict[str, Any], path: str) -> Union[Any, _Missing]:
    """
    Remove the value at ``path``.

    Returns:
        The removed value, or ``MISSING`` if nothing was there
    """
    segments = _split(path)
    parent = get_path(tree, ".".join(segments[:-1])) if len(segments) > 1 else tree
    leaf = segments[-1]

    if isinstance(parent, dict):
        return parent.pop(leaf, MISSING)
    if isinstance(parent, list) and leaf.isdigit() and int(leaf) < len(parent):
        return parent.pop(int(leaf))
    return MISSING
