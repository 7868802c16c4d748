# api/app/parsers/structure.py
from __future__ import annotations

import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Wrapper elements seen in uploaded reports; checked in order, first present wins.
ROOT_CANDIDATES = (
    "creditReport",
    "report",
    "creditData",
    "experianReport",
    "data",
    "INProfileResponse",
)


def normalize_structure(tree: Dict[str, Any]) -> Any:
    """
    Return the sub-tree under the first known wrapper element, or the whole
    tree when none is present. Not finding a wrapper is not an error.
    """
    if isinstance(tree, dict):
        for root in ROOT_CANDIDATES:
            if tree.get(root):
                logger.debug(f"Found XML root: {root}")
                return tree[root]

    logger.debug("No known root found, using document as is")
    return tree
