"""
Immutable Updates
=================

``update(current, setter)`` produces the next state snapshot from the
current one without touching it.

Snapshots are ``pyrsistent.PMap`` instances, so untouched fields (and the
whole map, when nothing changed) are shared by reference between the old and
the new snapshot. Downstream code relies on this: ``next is current`` means
"no real change".

Two setter shapes are accepted:

```python
update(state, {"count": 3})                   # shallow merge

def recipe(draft):                            # recipe over a mutable draft
    draft["count"] = draft["count"] + 1
    draft["user"]["name"] = "Grace"
    draft["tags"].append("new")
    del draft["error"]

update(state, recipe)
```

Nested maps and vectors read through a draft are drafts themselves; only the
paths that were actually written are rebuilt.

A recipe may also return a replacement mapping instead of mutating the draft.
Plain dicts, lists and sets written into a snapshot are frozen into their
persistent counterparts; values that are already persistent keep their
identity.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Iterator, List, Tuple, Union

from pyrsistent import PMap, PVector, freeze, pmap, pvector

from .exceptions import ConfigurationError

EMPTY_STATE: PMap = pmap()

Setter = Union[Mapping, Callable[["Draft"], Any]]


def freeze_value(value: Any) -> Any:
    """Freeze plain containers, leaving persistent ones as they are."""
    return freeze(value, strict=False)


def to_snapshot(value: Any) -> PMap:
    """Coerce a mapping into a snapshot."""
    if isinstance(value, PMap):
        return value
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"State must be a mapping, got {type(value).__name__}"
        )
    return pmap({key: freeze_value(item) for key, item in value.items()})


class Draft:
    """
    Mutable working copy of a snapshot, handed to recipes.

    Writes are recorded on a PMap evolver. Nested maps and vectors are handed
    out as child drafts on access, so ``draft["user"]["name"] = ...`` and
    ``draft["items"].append(...)`` are captured too. ``finish()`` rebuilds
    only the changed paths and returns the original snapshot object when no
    write changed anything.
    """

    __slots__ = ("_base", "_evolver", "_children")

    def __init__(self, base: PMap):
        self._base = base
        self._evolver = base.evolver()
        self._children: Dict[Any, Any] = {}

    def __getitem__(self, key: Any) -> Any:
        child = self._children.get(key)
        if child is not None:
            return child
        value = self._evolver[key]
        if isinstance(value, (PMap, PVector)):
            child = self._children[key] = _draft_of(value)
            return child
        return value

    def __setitem__(self, key: Any, value: Any) -> None:
        if key not in self._children and key in self._evolver:
            if self._evolver[key] is value:
                return
        self._children.pop(key, None)
        self._evolver[key] = _finish_value(value)

    def __delitem__(self, key: Any) -> None:
        del self._evolver[key]
        self._children.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._evolver

    def __iter__(self) -> Iterator[Any]:
        return iter(self._evolver.persistent())

    def __len__(self) -> int:
        return len(self._evolver)

    def keys(self) -> List[Any]:
        return list(self)

    def values(self) -> List[Any]:
        return [self[key] for key in self]

    def items(self) -> List[Tuple[Any, Any]]:
        return [(key, self[key]) for key in self]

    def get(self, key: Any, default: Any = None) -> Any:
        return self[key] if key in self._evolver else default

    def setdefault(self, key: Any, default: Any = None) -> Any:
        if key not in self._evolver:
            self[key] = default
        return self[key]

    def update(self, patch: Mapping) -> None:
        for key, value in patch.items():
            self[key] = value

    def finish(self) -> PMap:
        for key, child in self._children.items():
            self._evolver[key] = child.finish()
        return self._evolver.persistent()


class ListDraft:
    """
    Mutable working copy of a persistent vector.

    Supports the list operations recipes use. ``finish()`` returns the
    original vector when every element is still the identical object.
    """

    __slots__ = ("_base", "_items")

    def __init__(self, base: PVector):
        self._base = base
        self._items = list(base)

    def __getitem__(self, index: Union[int, slice]) -> Any:
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self._items)))]
        item = self._items[index]
        if isinstance(item, (PMap, PVector)):
            item = self._items[index] = _draft_of(item)
        return item

    def __setitem__(self, index: Union[int, slice], value: Any) -> None:
        if isinstance(index, slice):
            self._items[index] = [_finish_value(item) for item in value]
        else:
            self._items[index] = _finish_value(value)

    def __delitem__(self, index: Union[int, slice]) -> None:
        del self._items[index]

    def __contains__(self, value: object) -> bool:
        return value in self.finish()

    def __iter__(self) -> Iterator[Any]:
        for index in range(len(self._items)):
            yield self[index]

    def __len__(self) -> int:
        return len(self._items)

    def append(self, value: Any) -> None:
        self._items.append(_finish_value(value))

    def extend(self, values: Iterable[Any]) -> None:
        self._items.extend(_finish_value(value) for value in values)

    def insert(self, index: int, value: Any) -> None:
        self._items.insert(index, _finish_value(value))

    def pop(self, index: int = -1) -> Any:
        return _finish_draft(self._items.pop(index))

    def remove(self, value: Any) -> None:
        del self._items[self.finish().index(value)]

    def clear(self) -> None:
        self._items.clear()

    def finish(self) -> PVector:
        items = [_finish_draft(item) for item in self._items]
        if len(items) == len(self._base) and all(
            new is old for new, old in zip(items, self._base)
        ):
            return self._base
        return pvector(items)


def _draft_of(value: Any) -> Any:
    if isinstance(value, PMap):
        return Draft(value)
    return ListDraft(value)


def _finish_draft(value: Any) -> Any:
    if isinstance(value, (Draft, ListDraft)):
        return value.finish()
    return value


def _finish_value(value: Any) -> Any:
    return freeze_value(_finish_draft(value))


def merge(current: PMap, patch: Mapping) -> PMap:
    """Shallow-merge ``patch`` onto ``current``."""
    draft = Draft(current)
    draft.update(patch)
    return draft.finish()


def update(current: PMap, setter: Setter) -> PMap:
    """
    Apply ``setter`` to ``current`` and return the next snapshot.

    Raises:
        ConfigurationError: ``setter`` is neither callable nor a mapping, or a
            recipe returned something other than a mapping.
    """
    if callable(setter):
        draft = Draft(current)
        result = setter(draft)
        if result is None or result is draft:
            return draft.finish()
        if isinstance(result, Mapping):
            return _replace(current, result)
        raise ConfigurationError(
            f"Recipe must return None or a mapping, got {type(result).__name__}"
        )

    if isinstance(setter, Mapping):
        return merge(current, setter)

    raise ConfigurationError(
        f"Setter must be a callable or a mapping, got {type(setter).__name__}"
    )


def _replace(current: PMap, replacement: Mapping) -> PMap:
    # Keep the old snapshot, and old field references, when values are identical.
    if replacement is current:
        return current
    draft = Draft(current)
    for key in [key for key in current if key not in replacement]:
        del draft[key]
    draft.update(replacement)
    return draft.finish()
