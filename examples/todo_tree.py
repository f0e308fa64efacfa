"""
Todo Tree - statetree walkthrough rendered with Rich

A root "app" store with a "todos" feature store nested under it. The todos
store has computed fields; every settled change of the root is rendered as a
table, and every action on the shared channel is logged.

Run with:  python examples/todo_tree.py
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from statetree import (
    Action,
    AsapScheduler,
    create_action_channel,
    provide_store,
)
from statetree import operators as st

console = Console()


class TodoAdded(Action):
    KIND = "TODO_ADDED"

    def __init__(self, payload=None):
        super().__init__(self.KIND, payload)


provide_app = provide_store("app", lambda: {"user": "ada"})
provide_todos = provide_store(
    "todos",
    lambda: {
        "items": [],
        "filter": "all",
        "remaining": lambda state: sum(1 for item in state["items"] if not item["done"]),
        "total": lambda state: len(state["items"]),
    },
)


def render(state) -> Table:
    table = Table(title=f"app state ({state['user']})")
    table.add_column("todo")
    table.add_column("done", justify="center")
    todos = state["todos"]
    for item in todos["items"]:
        table.add_row(item["title"], "x" if item["done"] else "")
    table.caption = f"{todos['remaining']} of {todos['total']} remaining"
    return table


def add_item(action, draft) -> None:
    draft["items"].append({"title": action.payload, "done": False})


def complete_first(draft) -> None:
    draft["items"][0]["done"] = True


def main() -> None:
    scheduler = AsapScheduler()
    actions = create_action_channel()
    app = provide_app(actions, scheduler=scheduler)
    todos = provide_todos(actions, parent=app)

    actions.subscribe(lambda action: console.log(f"[dim]action[/dim] {action.kind}"))
    app.subscribe(lambda state: console.print(render(state)))

    # Record every TodoAdded as a new item.
    todos.of_action(TodoAdded).pipe(st.set_state(add_item, store=todos)).subscribe()

    console.print(Panel("Adding two todos in the same tick"))
    todos.dispatch(TodoAdded("write docs"))
    todos.dispatch(TodoAdded("ship it"))
    scheduler.flush()

    console.print(Panel("Completing the first todo"))
    todos.set_state(complete_first)
    scheduler.flush()

    todos.close()
    app.close()


if __name__ == "__main__":
    main()
