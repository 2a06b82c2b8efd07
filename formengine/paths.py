"""
Field path helpers.

Paths address leaves of the form state with dots for object members and
brackets for list positions, e.g. ``address.street`` or ``appIds[2]``.
"""

import re
from typing import Any, Dict, Iterable, List, Union

_TOKEN_RE = re.compile(r"([^.\[\]]+)|\[(\d+)\]")

PathToken = Union[str, int]


def join_path(prefix: str, name: str) -> str:
    """Extend a path with an object member name."""
    return f"{prefix}.{name}" if prefix else name


def index_path(prefix: str, position: int) -> str:
    """Extend a path with a list position."""
    return f"{prefix}[{position}]"


def is_under(path: str, prefix: str) -> bool:
    """
    Check whether ``path`` equals ``prefix`` or lies inside its subtree.

    ``appIds[1]`` covers ``appIds[1]`` and ``appIds[1].host`` but not
    ``appIds[10]``; ``address`` does not cover ``addressLine``.
    """
    if not prefix:
        return True
    if path == prefix:
        return True
    return path.startswith(prefix + ".") or path.startswith(prefix + "[")


def split_path(path: str) -> List[PathToken]:
    """Split a path into member names (str) and list positions (int)."""
    tokens: List[PathToken] = []
    for name, position in _TOKEN_RE.findall(path):
        if position:
            tokens.append(int(position))
        else:
            tokens.append(name)
    return tokens


def lookup_path(data: Any, path: str, default: Any = None) -> Any:
    """
    Read a value out of nested dicts/lists by path.

    Args:
        data: Nested record (dicts and lists)
        path: Field path
        default: Returned when any step is missing

    Returns:
        The value found at ``path`` or ``default``
    """
    current = data
    for token in split_path(path):
        if isinstance(token, int):
            if not isinstance(current, (list, tuple)) or token >= len(current):
                return default
            current = current[token]
        else:
            if not isinstance(current, dict) or token not in current:
                return default
            current = current[token]
    return current


def nest_paths(flat: Dict[str, Any], empty_lists: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Rebuild a nested record from flattened leaf paths.

    Args:
        flat: Mapping of path -> leaf value
        empty_lists: Paths of lists that exist but currently hold no items

    Returns:
        Nested dict/list structure
    """
    root: Dict[str, Any] = {}

    def _assign(tokens: List[PathToken], value: Any) -> None:
        container: Any = root
        for i, token in enumerate(tokens):
            last = i == len(tokens) - 1
            next_token = None if last else tokens[i + 1]
            empty = [] if isinstance(next_token, int) else {}
            if isinstance(token, int):
                while len(container) <= token:
                    container.append(None)
                if last:
                    container[token] = value
                else:
                    if container[token] is None:
                        container[token] = empty
                    container = container[token]
            else:
                if last:
                    container[token] = value
                else:
                    container = container.setdefault(token, empty)

    for list_path in sorted(empty_lists):
        _assign(split_path(list_path), [])
    for path, value in flat.items():
        _assign(split_path(path), value)

    return root
