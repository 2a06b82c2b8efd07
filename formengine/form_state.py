"""
Form state for the dynamic form engine.
The authoritative path -> leaf value mapping for one form instance.
"""

import copy
from typing import Any, Dict, Iterator, List, Optional
import logging

from .paths import is_under

logger = logging.getLogger(__name__)

MISSING = object()


class FormState:
    """
    Flat mapping of field path to leaf value.

    Renderers and list editors read and write through this object; nothing
    else keeps a private copy of form values. Cleared paths are simply gone:
    there is no cache they could be resurrected from.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._leaves: Dict[str, Any] = dict(initial or {})

    def __contains__(self, path: str) -> bool:
        return path in self._leaves

    def __len__(self) -> int:
        return len(self._leaves)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._leaves))

    def contains(self, path: str) -> bool:
        return path in self._leaves

    def get(self, path: str, default: Any = None) -> Any:
        """Get the leaf at ``path``, or ``default`` when absent."""
        return self._leaves.get(path, default)

    def set(self, path: str, value: Any) -> None:
        """Create or overwrite a single leaf."""
        if not path:
            raise ValueError("Cannot set a value without a path")
        self._leaves[path] = copy.deepcopy(value)
        logger.debug(f"[FormState.set] {path} = {value!r}")

    def paths_under(self, prefix: str) -> List[str]:
        """All leaf paths equal to or nested under ``prefix``."""
        return [path for path in self._leaves if is_under(path, prefix)]

    def clear_subtree(self, prefix: str) -> List[str]:
        """
        Remove every leaf whose path lies under ``prefix``.

        Returns:
            The removed paths
        """
        removed = self.paths_under(prefix)
        for path in removed:
            del self._leaves[path]
        if removed:
            logger.debug(f"[FormState.clear_subtree] {prefix}: removed {len(removed)} leaves")
        return removed

    def extract_subtree(self, prefix: str) -> Dict[str, Any]:
        """
        Remove and return the leaves under ``prefix``, keyed by their suffix.

        ``appIds[2].host`` extracted with prefix ``appIds[2]`` comes back as
        ``.host``; the prefix itself comes back as ``''``.
        """
        extracted: Dict[str, Any] = {}
        for path in self.paths_under(prefix):
            extracted[path[len(prefix):]] = self._leaves.pop(path)
        return extracted

    def insert_subtree(self, prefix: str, leaves: Dict[str, Any]) -> None:
        """Re-insert leaves produced by ``extract_subtree`` under a new prefix."""
        for suffix, value in leaves.items():
            self._leaves[prefix + suffix] = value

    def snapshot(self) -> Dict[str, Any]:
        """A detached copy of every leaf, for submission."""
        return copy.deepcopy(self._leaves)
