# fsmkit/core/guards.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from fsmkit.core.errors import GuardCreationError
from fsmkit.interfaces.protocols import EventAware


class Rule(ABC):
    """
    A guard: decides whether a transition may fire for an entity.

    Rules are constructed with the entity at the moment a transition is
    attempted, so they may keep a reference to it and read whatever they need
    in `applies`. Subclasses that want the triggering event implement
    `set_event` (see EventAware).
    """

    def __init__(self, entity: Any = None) -> None:
        """
        :param entity: The domain object the guard is evaluated against.
        """
        self._entity = entity

    @property
    def entity(self) -> Any:
        return self._entity

    @abstractmethod
    def applies(self) -> bool:
        """
        :return: True if the guarded transition may fire.
        """

    def __str__(self) -> str:
        return type(self).__name__


class TrueRule(Rule):
    """Always applies. Used when a transition has no guards."""

    def applies(self) -> bool:
        return True


class FalseRule(Rule):
    """Never applies."""

    def applies(self) -> bool:
        return False


class AndRule(Rule):
    """
    Conjunction of two rules, evaluated left to right with short-circuiting.
    Chains of AndRule are how several guards on one transition are combined.
    """

    def __init__(self, left: Rule, right: Rule) -> None:
        super().__init__(left.entity)
        self._left = left
        self._right = right

    def applies(self) -> bool:
        return self._left.applies() and self._right.applies()

    def __str__(self) -> str:
        return f"({self._left} and {self._right})"


def build_rule(
    factories: List[Callable[[Any], Rule]],
    names: List[str],
    entity: Any,
    event: Optional[str] = None,
) -> Rule:
    """
    Construct every guard with the entity and chain them into one rule.

    :param factories: Guard constructors, in evaluation order.
    :param names: Printable descriptor for each factory, used in error messages.
    :param entity: The domain object handed to each constructor.
    :param event: The triggering event, set on event-aware guards.
    :return: A TrueRule for no guards, otherwise an AndRule chain.
    :raises GuardCreationError: If a constructor refuses the entity.
    """
    rule: Rule = TrueRule(entity)
    for factory, name in zip(factories, names):
        try:
            single = factory(entity)
        except Exception as e:
            raise GuardCreationError(
                f"failed rule creation, '{name}' objects to construction with entity: {e}"
            ) from e
        if isinstance(single, EventAware):
            single.set_event(event)
        rule = AndRule(rule, single)
    return rule
