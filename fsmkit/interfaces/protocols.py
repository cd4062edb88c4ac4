# fsmkit/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Optional, Protocol, runtime_checkable

from fsmkit.interfaces.types import EventName, StateName


@runtime_checkable
class EventAware(Protocol):
    """
    Capability of a guard or action that wants to know the triggering event.

    Guards and actions are constructed with the entity only. When the
    constructed object also satisfies this protocol, the engine hands it the
    current event (or None for Moore-style calls) before using it, so a guard
    can make trigger-sensitive decisions.
    """

    def set_event(self, event: Optional[EventName]) -> None:
        """Receive the event that triggered the current transition attempt."""
        ...


@runtime_checkable
class ContextProtocol(Protocol):
    """
    Context protocol for type checking.

    Methods:
        get_entity(): Returns the domain object the machine operates on.
        get_state(): Returns the persisted state name for the entity.
        set_state(name): Persists a new state name for the entity.
        set_failed_transition(transition, error): Records a failed transition.
        get_id(readable): Returns a stable identifier string.
        get_machine(): Returns the machine name this context belongs to.

    Runtime Invariants:
    - A context binds exactly one entity to exactly one machine name.
    - The engine only ever reads and writes a state name through it.
    """

    def get_entity(self) -> Any: ...

    def get_state(self) -> StateName: ...

    def set_state(self, name: StateName) -> None: ...

    def set_failed_transition(self, transition: Any, error: Exception) -> None: ...

    def get_id(self, readable: bool = False) -> str: ...

    def get_machine(self) -> str: ...
