# tests/integration/test_scenarios.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging

import pytest

from fsmkit import (
    Command,
    Context,
    GenericPipelineError,
    HookManager,
    HookStage,
    MemoryAdapter,
    Registry,
    Rule,
    State,
    StateMachine,
    StateType,
    Transition,
    TransitionCallbacks,
)

pytestmark = pytest.mark.integration


class TrafficLight(TransitionCallbacks):
    """A light that refuses to change while a pedestrian is crossing."""

    def __init__(self, id):
        self.id = id
        self.crossing = False
        self.log = []
        self.switches = 0

    def on_check_can_transition(self, transition, event):
        return not self.crossing

    def on_event(self, transition, event):
        self.log.append(f"event:{event}")

    def on_enter_state(self, transition, event):
        self.log.append(f"enter:{transition.state_to}")


class Switch(Command):
    def execute(self):
        self.entity.switches += 1


class OnlyOnTimer(Rule):
    """Applies only when the transition was triggered by the timer."""

    def __init__(self, entity):
        super().__init__(entity)
        self._event = None

    def set_event(self, event):
        self._event = event

    def applies(self):
        return self._event == "timer"


def build_light_machine(context, hooks=None):
    registry = Registry(rules={"OnlyOnTimer": OnlyOnTimer}, commands={"Switch": Switch})
    machine = StateMachine(context, registry=registry, hooks=hooks)

    new = State(State.NEW, StateType.INITIAL)
    red, green, orange = State("red"), State("green"), State("orange")
    broken = State("broken", StateType.FINAL)
    for state in (new, red, green, orange, broken):
        machine.add_state(state)

    machine.add_transition(Transition(new, red, event="start"))
    machine.add_transition(Transition(red, green, event="timer", guards="OnlyOnTimer", actions="Switch"))
    machine.add_transition(Transition(green, orange, event="timer", guards="OnlyOnTimer", actions="Switch"))
    machine.add_transition(Transition(orange, red, event="timer", guards="OnlyOnTimer", actions="Switch"))
    # any working light can break down
    machine.add_transition(Transition(State.regex("^(red|green|orange)$"), broken, event="fail"))
    return machine


def test_traffic_light_cycle():
    light = TrafficLight("L1")
    machine = build_light_machine(Context.for_entity(light, "traffic-light"))

    assert machine.apply_triggered("start") is True
    for expected in ["green", "orange", "red", "green"]:
        assert machine.apply_triggered("timer") is True
        assert machine.get_current_state().name == expected

    assert light.switches == 4
    assert light.log[:3] == ["event:start", "enter:red", "event:timer"]


def test_event_aware_guard_rejects_named_calls():
    light = TrafficLight("L1")
    machine = build_light_machine(Context.for_entity(light, "traffic-light"))
    machine.apply_triggered("start")

    # named and run calls carry no event, so the timer guard does not apply
    assert machine.can_apply_named("red_to_green") is False
    assert machine.apply_named("red_to_green") is False
    assert machine.can_apply_triggered("timer") is True


def test_pedestrian_blocks_every_change():
    light = TrafficLight("L1")
    machine = build_light_machine(Context.for_entity(light, "traffic-light"))
    machine.apply_triggered("start")

    light.crossing = True
    assert machine.apply_triggered("timer") is False
    assert machine.apply_triggered("fail") is False
    light.crossing = False
    assert machine.apply_triggered("fail") is True
    assert machine.get_current_state().is_final()
    assert machine.run_to_completion() == 0


def test_pattern_registration_reaches_every_working_state():
    light = TrafficLight("L1")
    machine = build_light_machine(Context.for_entity(light, "traffic-light"))
    names = set(machine.get_transitions())
    assert {"red_to_broken", "green_to_broken", "orange_to_broken"} <= names
    assert "new_to_broken" not in names


def test_one_machine_serves_many_entities():
    adapter = MemoryAdapter()
    first, second = TrafficLight("L1"), TrafficLight("L2")
    first_ctx = Context.for_entity(first, "traffic-light", adapter=adapter)
    second_ctx = Context.for_entity(second, "traffic-light", adapter=adapter)

    machine = build_light_machine(first_ctx)
    machine.apply_triggered("start")
    machine.apply_triggered("timer")

    machine.set_context(second_ctx)
    assert machine.get_current_state().name == State.NEW
    machine.apply_triggered("start")

    machine.set_context(first_ctx)
    assert machine.get_current_state().name == "green"
    assert [r.state for r in adapter.get_history(first_ctx.identifier)] == ["red", "green"]
    assert [r.state for r in adapter.get_history(second_ctx.identifier)] == ["red"]


def test_audit_hooks_and_failure_history(caplog):
    audit = []
    hooks = HookManager()
    hooks.register(HookStage.POST_ENTER, lambda transition, event: audit.append(transition.name))

    class Fragile(TrafficLight):
        def on_enter_state(self, transition, event):
            if transition.state_to.name == "green":
                raise RuntimeError("bulb blew")

    light = Fragile("L9")
    ctx = Context.for_entity(light, "traffic-light")
    machine = build_light_machine(ctx, hooks=hooks)

    with caplog.at_level(logging.INFO, logger="fsmkit.core.state_machine"):
        machine.apply_triggered("start")
        with pytest.raises(GenericPipelineError):
            machine.apply_triggered("timer")

    assert audit == ["new_to_red"]
    assert "performed transition 'new_to_red'" in caplog.text
    assert "transition 'red_to_green' failed" in caplog.text

    failures = [r for r in ctx.adapter.get_history() if r.is_exception]
    assert len(failures) == 1
    assert failures[0].message.startswith("red_to_green: ")
    # the state was committed before the entry phase failed
    assert ctx.get_state() == "green"
