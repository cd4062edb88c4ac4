# fsmkit/core/callbacks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from fsmkit.core.transitions import Transition


class TransitionCallbacks:
    """
    Mixin for domain entities that want to take part in their transitions.

    An entity opts in by inheriting from this class and overriding the
    methods it cares about; the defaults allow every transition and do
    nothing. Entities that do not inherit from it get the defaults.

    Every method receives the transition being performed and the event that
    triggered it (None when the transition was requested by name or by run).
    """

    def on_check_can_transition(self, transition: "Transition", event: Optional[str]) -> bool:
        """Extra guard evaluated before the transition's own rules."""
        return True

    def on_exit_state(self, transition: "Transition", event: Optional[str]) -> None:
        """Called before the source state's exit actions."""

    def on_event(self, transition: "Transition", event: Optional[str]) -> None:
        """Called for triggered transitions only, before on_transition."""

    def on_transition(self, transition: "Transition", event: Optional[str]) -> None:
        """Called before the transition's actions."""

    def on_enter_state(self, transition: "Transition", event: Optional[str]) -> None:
        """Called before the target state's entry actions."""


_DEFAULT_CALLBACKS = TransitionCallbacks()


def callbacks_for(entity: Any) -> TransitionCallbacks:
    """The entity itself if it opted in, otherwise the no-op defaults."""
    if isinstance(entity, TransitionCallbacks):
        return entity
    return _DEFAULT_CALLBACKS
