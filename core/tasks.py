"""
Task Model Module
Normalizes nested task specifications into a flat list of named tasks.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from .errors import InvalidInputError


@dataclass(frozen=True)
class Task:
    name: str
    # Capture metadata (url, selector, viewport, ...), opaque to the comparison core
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'Task':
        name = data.get('name')
        if not isinstance(name, str) or not name:
            raise InvalidInputError(f"Task is missing a name: {dict(data)!r}")
        metadata = {k: v for k, v in data.items() if k != 'name'}
        return cls(name=name, metadata=metadata)

    def get(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)


def _to_task(leaf: Any) -> Task:
    if isinstance(leaf, Task):
        if not leaf.name:
            raise InvalidInputError("Task is missing a name")
        return leaf
    if isinstance(leaf, Mapping):
        return Task.from_mapping(leaf)
    raise InvalidInputError(f"Unsupported task entry: {leaf!r}")


def flatten(tasks: Any) -> List[Task]:
    """
    Flatten an arbitrarily nested task structure.

    Lists and tuples are treated as groups and walked depth-first, left to
    right. Every other entry must be a Task or a mapping with a ``name``.

    Raises:
        InvalidInputError: If a leaf has no name or is not a task.
    """
    result: List[Task] = []

    def walk(node: Any) -> None:
        if isinstance(node, (list, tuple)):
            for child in node:
                walk(child)
        else:
            result.append(_to_task(node))

    walk(tasks)
    return result


def ensure_unique_names(tasks: Iterable[Task]) -> None:
    """Raise InvalidInputError if two tasks share a name."""
    counts = Counter(task.name for task in tasks)
    duplicates = sorted(name for name, count in counts.items() if count > 1)
    if duplicates:
        raise InvalidInputError(f"Duplicate task names: {', '.join(duplicates)}")
