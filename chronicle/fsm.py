from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed


class MemoryLifecycle(StateMachine):
    """Guards the archive/retire transitions of a single memory.

    - active -> archived (moved to a diary, still counts against the cap)
    - active -> retired, archived -> retired (struck out, permanent)
    """

    active = State("active", value="active", initial=True)
    archived = State("archived", value="archived")
    retired = State("retired", value="retired", final=True)

    archive = active.to(archived)
    retire = active.to(retired) | archived.to(retired)

    def __init__(self, *, archived: bool = False, retired: bool = False):
        if retired:
            start = "retired"
        elif archived:
            start = "archived"
        else:
            start = "active"
        super().__init__(start_value=start)

    @property
    def state_value(self) -> str:
        return str(self.current_state.value)


def apply_lifecycle_event(*, archived: bool, retired: bool, event: str) -> str:
    """Run `event` from the given flags and return the resulting state value."""

    machine = MemoryLifecycle(archived=archived, retired=retired)
    try:
        machine.send(event)
    except TransitionNotAllowed as e:
        raise ValueError(f"Cannot {event} a memory that is {machine.state_value}") from e
    return machine.state_value
