# fsmkit/core/states.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional

from fsmkit.core.actions import build_command
from fsmkit.core.errors import ActionExecutionError, StateMachineError
from fsmkit.core.registry import Registry, describe, normalize_descriptors
from fsmkit.interfaces.types import Descriptors, EntityCallback

if TYPE_CHECKING:
    from fsmkit.interfaces.protocols import ContextProtocol
    from fsmkit.core.transitions import Transition

REGEX_MARKER = "regex:"


class StateType(Enum):
    INITIAL = "initial"
    NORMAL = "normal"
    FINAL = "final"
    REGEX = "regex"


def _compile_pattern(pattern: str) -> "re.Pattern[str]":
    # accept the 'regex:/.../' notation as well as a bare pattern
    if pattern.startswith(REGEX_MARKER):
        pattern = pattern[len(REGEX_MARKER) :]
    if len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/"):
        pattern = pattern[1:-1]
    return re.compile(pattern)


class State:
    """
    A named node in a state machine.

    A state knows the transitions that leave it, in the order they were
    added, and may carry entry and exit actions. States are shared by
    reference between all transitions that mention them, so equality is
    identity.

    A state of type REGEX is a pattern over state names. It is only used
    while registering transitions, where it is expanded into every matching
    concrete state; it is never entered or exited.
    """

    # name reported for an entity that has never been persisted
    NEW = "new"

    def __init__(
        self,
        name: str,
        state_type: StateType = StateType.NORMAL,
        entry_actions: Descriptors = None,
        exit_actions: Descriptors = None,
        entry_callback: Optional[EntityCallback] = None,
        exit_callback: Optional[EntityCallback] = None,
        description: str = "",
    ) -> None:
        """
        Initialize a state with its name, type and optional actions.

        :param name: Name identifying this state within its machine. For a
            REGEX state this is the pattern.
        :param state_type: One of initial, normal, final or regex.
        :param entry_actions: Action descriptors executed upon entering this state.
        :param exit_actions: Action descriptors executed upon exiting this state.
        :param entry_callback: Called with (entity, event) after the entry actions.
        :param exit_callback: Called with (entity, event) after the exit actions.
        :param description: Free text.
        """
        if not name or not isinstance(name, str):
            raise ValueError("State name must be a non-empty string")
        if not isinstance(state_type, StateType):
            raise ValueError("State type must be a StateType enum value")

        self._name = name
        self._type = state_type
        self._pattern = _compile_pattern(name) if state_type is StateType.REGEX else None
        self._transitions: List[Transition] = []
        self._entry_actions = normalize_descriptors(entry_actions)
        self._exit_actions = normalize_descriptors(exit_actions)
        self._entry_factories: Optional[List[Callable[[Any], Any]]] = None
        self._exit_factories: Optional[List[Callable[[Any], Any]]] = None
        self._entry_callback = entry_callback
        self._exit_callback = exit_callback
        self.description = description

    @classmethod
    def regex(cls, pattern: str, description: str = "") -> "State":
        """Create a pattern state matching state names with `re.search`."""
        return cls(pattern, StateType.REGEX, description=description)

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> StateType:
        return self._type

    @property
    def entry_actions(self) -> List:
        return list(self._entry_actions)

    @property
    def exit_actions(self) -> List:
        return list(self._exit_actions)

    def is_initial(self) -> bool:
        return self._type is StateType.INITIAL

    def is_normal(self) -> bool:
        return self._type is StateType.NORMAL

    def is_final(self) -> bool:
        return self._type is StateType.FINAL

    def is_regex(self) -> bool:
        return self._type is StateType.REGEX

    # transitions

    def add_transition(self, transition: "Transition") -> None:
        """
        Attach an outgoing transition. A transition with the same name takes
        the place of the one already attached, keeping its position.
        """
        for index, existing in enumerate(self._transitions):
            if existing.name == transition.name:
                self._transitions[index] = transition
                return
        self._transitions.append(transition)

    def remove_transition(self, transition: "Transition") -> None:
        """Detach an outgoing transition; unknown transitions are ignored."""
        self._transitions = [t for t in self._transitions if t is not transition]

    def has_transition(self, name: str) -> bool:
        return any(t.name == name for t in self._transitions)

    def get_transitions(self) -> List["Transition"]:
        """Outgoing transitions in the order they were added."""
        return list(self._transitions)

    def get_transitions_triggered_by(self, event: Optional[str]) -> List["Transition"]:
        return [t for t in self._transitions if t.is_triggered_by(event)]

    # patterns

    def matches(self, state: "State") -> bool:
        """
        For a REGEX state: whether the pattern matches the concrete state's name.
        For any other state: whether the names are equal.
        """
        if self._pattern is None:
            return self._name == state.name
        if state.is_regex():
            return False
        return self._pattern.search(state.name) is not None

    def expand(self, candidates: Iterable["State"]) -> List["State"]:
        """
        The concrete states this state stands for: every matching candidate
        for a REGEX state, otherwise just this state.
        """
        if self._pattern is None:
            return [self]
        return [candidate for candidate in candidates if self.matches(candidate)]

    # actions

    def bind(self, registry: Registry) -> None:
        """
        Resolve entry and exit action descriptors against a registry.

        :raises ActionCreationError: If a key is not registered.
        """
        self._entry_factories = registry.resolve_commands(self._entry_actions)
        self._exit_factories = registry.resolve_commands(self._exit_actions)

    def entry_action(self, context: "ContextProtocol", event: Optional[str] = None) -> None:
        """Execute the entry actions, then the entry callback."""
        if self._entry_factories is None:
            self._entry_factories = Registry().resolve_commands(self._entry_actions)
        self._run(self._entry_factories, self._entry_actions, self._entry_callback, context, event)

    def exit_action(self, context: "ContextProtocol", event: Optional[str] = None) -> None:
        """Execute the exit actions, then the exit callback."""
        if self._exit_factories is None:
            self._exit_factories = Registry().resolve_commands(self._exit_actions)
        self._run(self._exit_factories, self._exit_actions, self._exit_callback, context, event)

    def _run(self, factories, descriptors, callback, context, event) -> None:
        entity = context.get_entity()
        command = build_command(factories, [describe(d) for d in descriptors], entity, event)
        try:
            command.execute()
            if callback is not None:
                callback(entity, event)
        except StateMachineError:
            raise
        except Exception as e:
            raise ActionExecutionError(f"state '{self._name}' action failed: {e}") from e

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"State({self._name!r}, {self._type.value})"
