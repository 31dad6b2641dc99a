"""Tree fingerprints — fixed-size histograms for UI change detection.

Each node's own properties (class name, text, bounds, child count) are
folded into a 32-bit hash that selects one of FINGERPRINT_SIZE buckets.
The fingerprint is the bucket histogram, so it is independent of traversal
order and ``sum(fingerprint)`` equals the number of nodes.

Two fingerprints are compared by normalized L1 distance::

    similarity = 100 - diff_sum * 100 / (2 * max(sum(a), sum(b)))

computed in floating point so that small changes in large trees are not
truncated away, then clamped to [0, 100].
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from uistable.core.exceptions import FingerprintError
from uistable.core.models import FINGERPRINT_SIZE, FULL_MATCH_PERCENTAGE, Bounds, UiNode

logger = logging.getLogger(__name__)

Fingerprint = tuple[int, ...]

HASH_SEED = 17
HASH_MULTIPLIER = 31
_MASK32 = 0xFFFFFFFF
_INDEX_MASK = 0x7FFFFFFF


def string_hash(value: str) -> int:
    """Deterministic 32-bit polynomial hash over UTF-16 code units.

    Built-in ``hash()`` is salted per process, which would make
    fingerprints from two processes incomparable.
    """
    data = value.encode("utf-16-be", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        h = (HASH_MULTIPLIER * h + ((data[i] << 8) | data[i + 1])) & _MASK32
    return h


def bounds_hash(bounds: Bounds) -> int:
    h = bounds.left
    for value in (bounds.top, bounds.right, bounds.bottom):
        h = HASH_MULTIPLIER * h + value
    return h & _MASK32


def node_hash(node: UiNode) -> int:
    """Hash of one node's own fields. Descendants do not contribute."""
    h = HASH_SEED
    h = HASH_MULTIPLIER * h + (string_hash(node.class_name) if node.class_name is not None else 0)
    h = HASH_MULTIPLIER * h + (string_hash(node.text) if node.text is not None else 0)
    h = HASH_MULTIPLIER * h + bounds_hash(node.bounds)
    h = HASH_MULTIPLIER * h + len(node.children)
    return h & _MASK32


def bucket_index(node: UiNode) -> int:
    return (node_hash(node) & _INDEX_MASK) % FINGERPRINT_SIZE


def generate(snapshot: UiNode | Sequence[UiNode]) -> Fingerprint:
    """Build the histogram fingerprint of a tree or of several window trees.

    Args:
        snapshot: A root node, or one root per window. Window fingerprints
            are summed into a single histogram.

    Returns:
        Tuple of FINGERPRINT_SIZE non-negative counters.
    """
    roots = [snapshot] if isinstance(snapshot, UiNode) else list(snapshot)
    buckets = [0] * FINGERPRINT_SIZE
    stack: list[UiNode] = list(roots)
    while stack:
        node = stack.pop()
        buckets[bucket_index(node)] += 1
        stack.extend(node.children)
    return tuple(buckets)


def compare(a: Sequence[int], b: Sequence[int]) -> int:
    """Similarity of two fingerprints as an integer percentage in [0, 100].

    Symmetric. Two all-zero fingerprints are identical (100).

    Raises:
        FingerprintError: If either fingerprint is not FINGERPRINT_SIZE long.
    """
    if len(a) != FINGERPRINT_SIZE:
        msg = f"Fingerprint 'a' must have size {FINGERPRINT_SIZE}, got {len(a)}"
        raise FingerprintError(msg)
    if len(b) != FINGERPRINT_SIZE:
        msg = f"Fingerprint 'b' must have size {FINGERPRINT_SIZE}, got {len(b)}"
        raise FingerprintError(msg)

    total_nodes = max(sum(a), sum(b))
    if total_nodes == 0:
        return FULL_MATCH_PERCENTAGE

    diff_sum = sum(abs(x - y) for x, y in zip(a, b, strict=True))
    similarity = int(
        FULL_MATCH_PERCENTAGE - diff_sum * FULL_MATCH_PERCENTAGE / (2.0 * total_nodes)
    )
    return max(0, min(FULL_MATCH_PERCENTAGE, similarity))


def tree_digest(snapshot: UiNode | Sequence[UiNode]) -> int:
    """Order-sensitive 32-bit digest of a whole tree.

    Unlike the histogram, children are folded in order, so reordering
    siblings changes the digest.
    """
    if isinstance(snapshot, UiNode):
        return _subtree_digest(snapshot)
    h = HASH_SEED
    for root in snapshot:
        h = (HASH_MULTIPLIER * h + _subtree_digest(root)) & _MASK32
    return h


def _subtree_digest(root: UiNode) -> int:
    # Post-order walk; digests keyed by object identity.
    digests: dict[int, int] = {}
    stack: list[tuple[UiNode, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if not expanded:
            stack.append((node, True))
            stack.extend((child, False) for child in node.children)
            continue
        h = node_hash(node)
        for child in node.children:
            h = (HASH_MULTIPLIER * h + digests[id(child)]) & _MASK32
        digests[id(node)] = h
    return digests[id(root)]


def describe(fingerprint: Sequence[int]) -> dict[int, int]:
    """Non-empty buckets as {index: count}, for display and debugging."""
    populated = {i: count for i, count in enumerate(fingerprint) if count}
    logger.debug("Fingerprint: %d nodes in %d buckets", sum(fingerprint), len(populated))
    return populated
