# fsmkit/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from fsmkit.core.actions import Command, build_command
from fsmkit.core.errors import ActionExecutionError, GuardEvaluationError, StateMachineError
from fsmkit.core.guards import Rule, build_rule
from fsmkit.core.registry import Registry, describe, normalize_descriptors
from fsmkit.interfaces.types import Descriptors, EntityCallback

if TYPE_CHECKING:
    from fsmkit.core.states import State
    from fsmkit.interfaces.protocols import ContextProtocol

logger = logging.getLogger(__name__)

SEPARATOR = "_to_"


def transition_name(state_from: str, state_to: str) -> str:
    """The canonical name of the transition between two state names."""
    return f"{state_from}{SEPARATOR}{state_to}"


class Transition:
    """
    Defines a possible path from one state to another, guarded by rules and
    performing commands. Used by the state machine to change states, either
    by name or when one of its triggers is handled.

    Guards and actions are given as descriptors: registry keys or
    constructors taking the entity. They are turned into objects every time
    the transition is attempted, since they are bound to the entity of the
    machine's current context.
    """

    def __init__(
        self,
        state_from: "State",
        state_to: "State",
        event: Optional[str] = None,
        guards: Descriptors = None,
        actions: Descriptors = None,
        callback: Optional[EntityCallback] = None,
        description: str = "",
    ) -> None:
        """
        :param state_from: The origin State of this transition.
        :param state_to: The destination State of this transition.
        :param event: Trigger name; defaults to the transition name.
        :param guards: Guard descriptors that must all apply for the transition.
        :param actions: Action descriptors executed, in order, when the transition occurs.
        :param callback: Called with (entity, event) after the actions.
        :param description: Free text.
        """
        self._state_from = state_from
        self._state_to = state_to
        self._event = event or None
        self._guards = normalize_descriptors(guards)
        self._actions = normalize_descriptors(actions)
        self._rule_factories: Optional[List[Callable[[Any], Any]]] = None
        self._command_factories: Optional[List[Callable[[Any], Any]]] = None
        self._callback = callback
        self.description = description

        # pattern states are expanded later and keep no transitions of their own;
        # a same-name transition already attached is only replaced by a machine
        if not state_from.is_regex() and not state_from.has_transition(self.name):
            state_from.add_transition(self)

    @property
    def state_from(self) -> "State":
        return self._state_from

    @property
    def state_to(self) -> "State":
        return self._state_to

    @property
    def name(self) -> str:
        return transition_name(self._state_from.name, self._state_to.name)

    @property
    def event(self) -> str:
        """The trigger name, which is the transition name unless set explicitly."""
        return self._event or self.name

    @property
    def guards(self) -> List:
        return list(self._guards)

    @property
    def actions(self) -> List:
        return list(self._actions)

    @property
    def callback(self) -> Optional[EntityCallback]:
        return self._callback

    def is_regex(self) -> bool:
        return self._state_from.is_regex() or self._state_to.is_regex()

    def is_triggered_by(self, event: Optional[str]) -> bool:
        """Whether `event` is this transition's trigger or its name."""
        if not event:
            return False
        return event == self.event or event == self.name

    def bind(self, registry: Registry) -> None:
        """
        Resolve guard and action descriptors against a registry.

        :raises GuardCreationError: If a guard key is not registered.
        :raises ActionCreationError: If an action key is not registered.
        """
        self._rule_factories = registry.resolve_rules(self._guards)
        self._command_factories = registry.resolve_commands(self._actions)

    def get_rule(self, context: "ContextProtocol", event: Optional[str] = None) -> Rule:
        """
        :return: The guards constructed with the context's entity and chained with AND.
        :raises GuardCreationError: If a guard cannot be resolved or constructed.
        """
        if self._rule_factories is None:
            self._rule_factories = Registry().resolve_rules(self._guards)
        names = [describe(d) for d in self._guards]
        return build_rule(self._rule_factories, names, context.get_entity(), event)

    def get_command(self, context: "ContextProtocol", event: Optional[str] = None) -> Command:
        """
        :return: The actions constructed with the context's entity and composed.
        :raises ActionCreationError: If an action cannot be resolved or constructed.
        """
        if self._command_factories is None:
            self._command_factories = Registry().resolve_commands(self._actions)
        names = [describe(d) for d in self._actions]
        return build_command(self._command_factories, names, context.get_entity(), event)

    def can(self, context: "ContextProtocol", event: Optional[str] = None) -> bool:
        """
        Evaluate the guards to determine if the transition can occur.

        :param context: The context supplying the entity.
        :param event: The triggering event, if the transition was triggered.
        :return: True if all guards apply.
        :raises GuardCreationError: If a guard cannot be built.
        :raises GuardEvaluationError: If a guard fails while evaluating.
        """
        rule = self.get_rule(context, event)
        try:
            applies = bool(rule.applies())
        except StateMachineError:
            raise
        except Exception as e:
            raise GuardEvaluationError(f"rule '{rule}' failed for transition '{self.name}': {e}") from e
        if not applies:
            logger.debug("transition '%s' rejected by %s", self.name, rule)
        return applies

    def process(self, context: "ContextProtocol", event: Optional[str] = None) -> None:
        """
        Execute the transition's actions and then its callback. Guards are not
        checked here; the state machine does that.

        :param context: The context supplying the entity.
        :param event: The triggering event, if the transition was triggered.
        :raises ActionCreationError: If an action cannot be built.
        :raises ActionExecutionError: If an action or the callback fails.
        """
        command = self.get_command(context, event)
        try:
            command.execute()
            if self._callback is not None:
                self._callback(context.get_entity(), event)
        except StateMachineError:
            raise
        except Exception as e:
            raise ActionExecutionError(f"command '{command}' failed for transition '{self.name}': {e}") from e

    def get_copy(self, state_from: "State", state_to: "State") -> "Transition":
        """
        Copy this transition onto different endpoints, keeping every other
        field. Used when a transition between pattern states is expanded.
        Subclasses with extra fields should extend this.
        """
        copy = type(self)(
            state_from,
            state_to,
            event=self._event,
            guards=self._guards,
            actions=self._actions,
            callback=self._callback,
            description=self.description,
        )
        copy._rule_factories = self._rule_factories
        copy._command_factories = self._command_factories
        return copy

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        guards = ",".join(describe(d) for d in self._guards)
        actions = ",".join(describe(d) for d in self._actions)
        return f"{type(self).__name__}('{self.name}' event='{self.event}' guards='{guards}' actions='{actions}')"
