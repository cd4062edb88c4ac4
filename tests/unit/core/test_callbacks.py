# tests/unit/core/test_callbacks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from fsmkit.core.callbacks import TransitionCallbacks, callbacks_for


class Subscriber(TransitionCallbacks):
    def __init__(self):
        self.exited = []

    def on_exit_state(self, transition, event):
        self.exited.append((transition, event))


def test_defaults_allow_and_do_nothing():
    callbacks = TransitionCallbacks()
    assert callbacks.on_check_can_transition("t", None) is True
    assert callbacks.on_exit_state("t", "go") is None
    assert callbacks.on_event("t", "go") is None
    assert callbacks.on_transition("t", None) is None
    assert callbacks.on_enter_state("t", None) is None


def test_callbacks_for_plain_entity(order):
    callbacks = callbacks_for(order)
    assert callbacks is not order
    assert isinstance(callbacks, TransitionCallbacks)
    assert callbacks.on_check_can_transition("t", None) is True


def test_callbacks_for_subscriber():
    entity = Subscriber()
    assert callbacks_for(entity) is entity
    callbacks_for(entity).on_exit_state("t", "go")
    assert entity.exited == [("t", "go")]
