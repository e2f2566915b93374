"""Generic graph walker over live, dynamically-shaped object graphs.

Nodes are visited once by identity (not equality): asset graphs may be
cyclic and share large substructures, and two equal-looking records are
still two distinct values to report.
"""

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

# Values with no children worth walking.
SCALAR_TYPES = (str, bytes, bytearray, int, float, complex, bool, type(None))

SEQUENCE_TYPES = (list, tuple, set, frozenset)


class IdentitySet:
    """Set keyed by object identity.

    Holds a reference to every member so ids cannot be recycled while
    the walk is running.
    """

    def __init__(self) -> None:
        self._members: dict[int, Any] = {}

    def add(self, obj: Any) -> bool:
        """Add ``obj``; return False if it was already present."""
        key = id(obj)
        if key in self._members:
            return False
        self._members[key] = obj
        return True

    def __contains__(self, obj: Any) -> bool:
        return id(obj) in self._members

    def __len__(self) -> int:
        return len(self._members)


def is_scalar(value: Any) -> bool:
    return isinstance(value, SCALAR_TYPES) or isinstance(value, type)


def is_sequence(value: Any) -> bool:
    return isinstance(value, SEQUENCE_TYPES)


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def iter_fields(value: Any) -> Iterator[tuple[str, Any]]:
    """Yield (name, value) for the instance fields of a typed record.

    Covers dataclasses, ``__slots__`` classes and plain ``__dict__``
    objects, walking the class hierarchy for slots. Fields that fail to
    read are skipped.
    """
    seen_names = set()

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        for field in dataclasses.fields(value):
            seen_names.add(field.name)
            try:
                yield field.name, getattr(value, field.name)
            except Exception:
                logger.debug("Skipping unreadable field %s on %r", field.name, type(value))

    instance_dict = getattr(value, "__dict__", None)
    if isinstance(instance_dict, dict):
        for name, child in list(instance_dict.items()):
            if name not in seen_names:
                seen_names.add(name)
                yield name, child

    for cls in type(value).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in seen_names or name in ("__dict__", "__weakref__"):
                continue
            seen_names.add(name)
            try:
                yield name, getattr(value, name)
            except AttributeError:
                # Declared but never assigned.
                continue
            except Exception:
                logger.debug("Skipping unreadable slot %s on %r", name, type(value))


def iter_children(value: Any) -> List[Any]:
    """Return the direct children of a node.

    Sequences yield their elements, mappings their keys and values, typed
    records their field values. Scalars and nodes that cannot be
    introspected have no children.
    """
    if is_scalar(value):
        return []
    try:
        if is_sequence(value):
            return [child for child in value if child is not None]
        if is_mapping(value):
            children = []
            for key, child in list(value.items()):
                if key is not None:
                    children.append(key)
                if child is not None:
                    children.append(child)
            return children
        return [child for _, child in iter_fields(value) if child is not None]
    except Exception:
        logger.debug("Cannot introspect %r; skipping its children", type(value))
        return []


def walk_graph(
    root: Any,
    visit: Callable[[Any], None],
    descend: Optional[Callable[[Any], bool]] = None,
) -> int:
    """Visit every node reachable from ``root`` exactly once.

    Args:
        root: Any value: scalar, sequence, mapping, or typed record.
        visit: Called once per distinct non-None node.
        descend: Optional filter deciding whether a *typed record*'s fields
            are walked. Sequences and mappings are always expanded.

    Returns:
        Number of distinct nodes visited.
    """
    if root is None:
        return 0

    visited = IdentitySet()
    stack: List[Any] = [root]

    while stack:
        current = stack.pop()
        if current is None or not visited.add(current):
            continue

        visit(current)

        if is_scalar(current):
            continue
        if not (is_sequence(current) or is_mapping(current)):
            if descend is not None and not descend(current):
                continue
        stack.extend(iter_children(current))

    return len(visited)


def walk_many(roots: Iterable[Any], visit: Callable[[Any], None],
              descend: Optional[Callable[[Any], bool]] = None) -> int:
    """Walk several roots, each with its own visited set."""
    total = 0
    for root in roots:
        total += walk_graph(root, visit, descend)
    return total
