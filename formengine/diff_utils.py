"""
Change tracking for the form engine.

Compares the record a form was opened with against what the form would
submit now, using DeepDiff, and reports the changed field paths.
"""

from typing import Any, Dict, List
import logging

from deepdiff import DeepDiff

from .paths import index_path, join_path

logger = logging.getLogger(__name__)


def _tokens_to_path(tokens: List[Any]) -> str:
    path = ''
    for token in tokens:
        if isinstance(token, int):
            path = index_path(path, token)
        else:
            path = join_path(path, str(token))
    return path


def calculate_changes(original: Dict[str, Any], modified: Dict[str, Any]) -> List[str]:
    """
    Field paths whose value differs between two nested records.

    Args:
        original: Record as loaded (or {} for a new record)
        modified: Record as it would be submitted

    Returns:
        Sorted list of changed paths (``appIds[1]``, ``hostUrl``, ...)
    """
    try:
        diff = DeepDiff(original or {}, modified or {}, view='tree', ignore_numeric_type_changes=True)
    except Exception as e:
        logger.error(f"Error calculating changes: {e}", exc_info=True)
        raise

    paths = set()
    for report_type, levels in diff.items():
        for level in levels:
            paths.add(_tokens_to_path(level.path(output_format='list')))

    logger.debug(f"[calculate_changes] {len(paths)} changed paths")
    return sorted(paths)


def has_changes(original: Dict[str, Any], modified: Dict[str, Any]) -> bool:
    """Whether submitting ``modified`` would change anything."""
    return bool(calculate_changes(original, modified))
