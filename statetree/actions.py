"""
Action Envelopes
================

Actions are tagged records pushed onto the tree-wide action channel for
observability. The discriminant is a plain string ``kind``; subclasses fix
their kind in the constructor and publish it as the ``KIND`` class constant
so consumers can filter by class or by string alike.

```python
class TodoAdded(Action):
    KIND = "TODO_ADDED"

    def __init__(self, payload=None):
        super().__init__(self.KIND, payload)
```
"""

from dataclasses import dataclass
from typing import Any, Type, Union

from .exceptions import ConfigurationError

SET_STATE = "SET_STATE"


@dataclass(frozen=True)
class Action:
    """Action envelope: a string discriminant plus an optional payload."""

    kind: str
    payload: Any = None

    KIND = None

    def __post_init__(self):
        if not isinstance(self.kind, str) or not self.kind:
            raise ConfigurationError(f"Action kind must be a non-empty string, got {self.kind!r}")


class SetState(Action):
    """Dispatched by a store after each state change; carries the new snapshot."""

    KIND = SET_STATE

    def __init__(self, payload: Any):
        super().__init__(SET_STATE, payload)


ActionKind = Union[str, Type[Action]]


def action_kind(kind: ActionKind) -> str:
    """Resolve an action class or a kind string to the kind string."""
    if isinstance(kind, str):
        return kind
    if isinstance(kind, type) and issubclass(kind, Action) and kind.KIND:
        return kind.KIND
    raise ConfigurationError(f"Cannot resolve an action kind from {kind!r}")


def kind_of(action: Any) -> Any:
    """Discriminant of a dispatched value; None for values without one."""
    return getattr(action, "kind", None)
