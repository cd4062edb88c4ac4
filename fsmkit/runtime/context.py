# fsmkit/runtime/context.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Binding of one entity to one machine and to the place its state is kept.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from fsmkit.core.states import State

if TYPE_CHECKING:
    from fsmkit.core.transitions import Transition


@dataclass(frozen=True)
class Identifier:
    """Identifies an entity within a machine."""

    entity_id: str
    machine: str

    def get_id(self, readable: bool = False) -> str:
        if readable:
            return f"machine: '{self.machine}', id: '{self.entity_id}'"
        return f"{self.machine}_{self.entity_id}"


@dataclass
class HistoryRecord:
    """Internal record for state history tracking."""

    timestamp: float
    identifier: Identifier
    state: str
    message: Optional[str] = None
    is_exception: bool = False


class PersistenceAdapter(ABC):
    """
    Where the current state name of an entity is kept. Implementations may
    be backed by anything; the engine only ever reads and writes names.
    """

    @abstractmethod
    def get_state(self, identifier: Identifier) -> str: ...

    @abstractmethod
    def set_state(self, identifier: Identifier, state: str) -> None: ...

    @abstractmethod
    def add_history(
        self,
        identifier: Identifier,
        state: str,
        message: Optional[str] = None,
        is_exception: bool = False,
    ) -> None: ...


class MemoryAdapter(PersistenceAdapter):
    """
    Keeps states and history in process memory. An entity that was never
    stored is reported as being in State.NEW.
    """

    def __init__(self, initial_state: str = State.NEW) -> None:
        self._initial_state = initial_state
        self._states: Dict[Identifier, str] = {}
        self._history: List[HistoryRecord] = []

    def get_state(self, identifier: Identifier) -> str:
        return self._states.get(identifier, self._initial_state)

    def set_state(self, identifier: Identifier, state: str) -> None:
        self._states[identifier] = state
        self.add_history(identifier, state)

    def add_history(
        self,
        identifier: Identifier,
        state: str,
        message: Optional[str] = None,
        is_exception: bool = False,
    ) -> None:
        self._history.append(
            HistoryRecord(
                timestamp=time.time(),
                identifier=identifier,
                state=state,
                message=message,
                is_exception=is_exception,
            )
        )

    def get_history(self, identifier: Optional[Identifier] = None) -> List[HistoryRecord]:
        """All records, or only those of one entity, oldest first."""
        if identifier is None:
            return list(self._history)
        return [record for record in self._history if record.identifier == identifier]

    def clear(self) -> None:
        self._states.clear()
        self._history.clear()


class Context:
    """
    Supplies a state machine with its entity and that entity's state.

    The entity is built lazily from the identifier by `builder` and cached;
    without a builder the identifier itself serves as the entity.
    """

    def __init__(
        self,
        identifier: Identifier,
        builder: Optional[Callable[[Identifier], Any]] = None,
        adapter: Optional[PersistenceAdapter] = None,
    ) -> None:
        """
        :param identifier: Which entity, in which machine.
        :param builder: Builds the domain object from the identifier.
        :param adapter: Persistence for the state name; in memory by default.
        """
        self._identifier = identifier
        self._builder = builder
        self._adapter = adapter or MemoryAdapter()
        self._entity: Any = None
        self._entity_built = False

    @classmethod
    def for_entity(
        cls,
        entity: Any,
        machine: str,
        entity_id: Optional[str] = None,
        adapter: Optional[PersistenceAdapter] = None,
    ) -> "Context":
        """Context for an already built entity."""
        if entity_id is None:
            entity_id = str(getattr(entity, "id", id(entity)))
        return cls(Identifier(entity_id, machine), builder=lambda _: entity, adapter=adapter)

    @property
    def identifier(self) -> Identifier:
        return self._identifier

    @property
    def adapter(self) -> PersistenceAdapter:
        return self._adapter

    def get_entity(self) -> Any:
        if not self._entity_built:
            self._entity = self._builder(self._identifier) if self._builder else self._identifier
            self._entity_built = True
        return self._entity

    def get_entity_id(self) -> str:
        return self._identifier.entity_id

    def get_machine(self) -> str:
        return self._identifier.machine

    def get_id(self, readable: bool = False) -> str:
        return self._identifier.get_id(readable)

    def get_state(self) -> str:
        return self._adapter.get_state(self._identifier)

    def set_state(self, name: str) -> None:
        self._adapter.set_state(self._identifier, name)

    def set_failed_transition(self, transition: "Transition", error: Exception) -> None:
        """Record a transition that raised, against the state it started from."""
        self._adapter.add_history(
            self._identifier,
            transition.state_from.name,
            message=f"{transition.name}: {error}",
            is_exception=True,
        )

    def __str__(self) -> str:
        return f"{type(self).__name__}: [{self.get_id(True)}]"
