# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from fsmkit.core.actions import Command
from fsmkit.core.guards import Rule


def pytest_configure(config):
    """Register custom marks."""
    config.addinivalue_line("markers", "regex: mark test as exercising pattern state expansion")
    config.addinivalue_line("markers", "integration: mark test as an end-to-end scenario")
    config.addinivalue_line("markers", "property: mark test as property-based")


class Order:
    """A plain domain object; it does not opt in to transition callbacks."""

    def __init__(self, id: str = "1") -> None:
        self.id = id
        self.count = 0
        self.paid = False
        self.event = None


class IsPaid(Rule):
    def applies(self) -> bool:
        return self.entity.paid


class IsNotPaid(Rule):
    def applies(self) -> bool:
        return not self.entity.paid


class Increase(Command):
    """Increases the entity's counter and remembers the event it was given."""

    def __init__(self, entity) -> None:
        super().__init__(entity)
        self._event = None

    def set_event(self, event) -> None:
        self._event = event

    def execute(self) -> None:
        self.entity.count += 1
        self.entity.event = self._event


class Explode(Command):
    def execute(self) -> None:
        raise RuntimeError("boom")


class CannotCreate(Command):
    def __init__(self, entity) -> None:
        raise ValueError("cannot create")

    def execute(self) -> None:
        pass


class BrokenRule(Rule):
    def applies(self) -> bool:
        raise ZeroDivisionError("division by zero")


@pytest.fixture
def order():
    """A fresh, unpaid order."""
    return Order()


@pytest.fixture
def context(order):
    """A context for the order in the 'order' machine, stored in memory."""
    from fsmkit.runtime.context import Context

    return Context.for_entity(order, "order")


@pytest.fixture
def registry():
    """A registry with the helper guards and actions of this module."""
    from fsmkit.core.registry import Registry

    return Registry(
        rules={"IsPaid": IsPaid, "IsNotPaid": IsNotPaid, "Broken": BrokenRule},
        commands={"Inc": Increase, "Explode": Explode, "CannotCreate": CannotCreate},
    )


@pytest.fixture
def guard_classes():
    """Provides the helper guard classes for tests that build their own registry."""
    return IsPaid, IsNotPaid, BrokenRule


@pytest.fixture
def command_classes():
    """Provides the helper command classes for tests that build their own registry."""
    return Increase, Explode, CannotCreate


@pytest.fixture
def order_states():
    """new (initial) -> paid -> shipped (final), and cancelled (final)."""
    from fsmkit.core.states import State, StateType

    return {
        "new": State("new", StateType.INITIAL),
        "paid": State("paid"),
        "shipped": State("shipped", StateType.FINAL),
        "cancelled": State("cancelled", StateType.FINAL),
    }


@pytest.fixture
def machine_factory(context, registry, order_states):
    """Returns a factory building the order machine with optional hooks and handlers."""
    from fsmkit.core.state_machine import StateMachine
    from fsmkit.core.transitions import Transition

    def _factory(hooks=None, event_handlers=None, ctx=None):
        machine = StateMachine(ctx or context, registry=registry, hooks=hooks, event_handlers=event_handlers)
        s = order_states
        machine.add_transition(Transition(s["new"], s["paid"], event="pay", guards="IsPaid"))
        machine.add_transition(Transition(s["new"], s["cancelled"], event="cancel"))
        machine.add_transition(Transition(s["paid"], s["shipped"], event="ship", actions="Inc"))
        machine.add_transition(Transition(s["paid"], s["cancelled"], event="cancel"))
        return machine

    return _factory


@pytest.fixture
def machine(machine_factory):
    """The order machine without hooks or handlers."""
    return machine_factory()
