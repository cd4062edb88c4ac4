# fsmkit/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging
from typing import Dict, Mapping, Optional

from fsmkit.core.callbacks import callbacks_for
from fsmkit.core.errors import (
    ContextMismatchError,
    NoCurrentStateError,
    NoInitialStateError,
    PipelineStage,
    TransitionNotFoundError,
    wrap_error,
)
from fsmkit.core.hooks import HookManager, HookStage
from fsmkit.core.registry import Registry
from fsmkit.core.states import State
from fsmkit.core.transitions import Transition
from fsmkit.interfaces.protocols import ContextProtocol
from fsmkit.interfaces.types import EventHandler

logger = logging.getLogger(__name__)


class StateMachine:
    """
    Executes transitions for the entity of one context.

    Transitions can be requested by name (`apply_named`), found by trigger
    among the transitions of the current state (`apply_triggered`), or picked
    as the first one whose guards pass (`run_once`, `run_to_completion`).
    All of them go through the same pipeline:

    1. guards: PRE_CHECK hooks, the entity's on_check_can_transition, the
       transition's rules;
    2. exit: PRE_EXIT hooks, on_exit_state, the source state's exit actions;
    3. transition: PRE_TRANSITION hooks, on_event and the trigger's handler
       (triggered transitions only), on_transition, the transition's
       actions, then the new state is committed to the context;
    4. entry: on_enter_state, the target state's entry actions, POST_ENTER
       hooks.

    A guard that rejects makes the call return False. Any failure is
    reported to the context as a failed transition and raised as a
    StateMachineError.
    """

    def __init__(
        self,
        context: ContextProtocol,
        registry: Optional[Registry] = None,
        hooks: Optional[HookManager] = None,
        event_handlers: Optional[Mapping[str, EventHandler]] = None,
    ) -> None:
        """
        :param context: Supplies the entity and its persisted state name.
        :param registry: Resolves guard and action keys used by transitions and states.
        :param hooks: Pipeline stage callbacks.
        :param event_handlers: Maps a trigger name to a handler called with
            (entity, transition, event) when a transition is triggered by it.
        """
        self._context: Optional[ContextProtocol] = None
        self._states: Dict[str, State] = {}
        self._transitions: Dict[str, Transition] = {}
        self._state: Optional[State] = None
        self._registry = registry or Registry()
        self._hooks = hooks or HookManager()
        self._event_handlers: Dict[str, EventHandler] = {}
        for event, handler in (event_handlers or {}).items():
            if not callable(handler):
                raise ValueError(f"Handler for event '{event}' must be callable")
            self._event_handlers[event] = handler
        self.set_context(context)

    # ------------------------------------------------------------------
    # transition methods
    # ------------------------------------------------------------------

    def apply_named(self, name: str) -> bool:
        """
        Perform the transition with the given name, if its guards allow it.

        :return: True if the transition was performed, False if a guard rejected it.
        :raises TransitionNotFoundError: If no transition has that name.
        """
        transition = self.get_transition(name)
        if transition is None:
            raise TransitionNotFoundError(f"transition not found for '{name}'")
        return self._perform_transition(transition, None, check_guards=True)

    def apply_triggered(self, event: str) -> bool:
        """
        Try the transitions of the current state triggered by `event`, in the
        order they were added, and perform the first one whose guards pass.

        :return: True if a transition was performed.
        """
        for transition in self.get_current_state().get_transitions_triggered_by(event):
            if self._perform_transition(transition, event, check_guards=True):
                return True
        return False

    def run_once(self) -> bool:
        """
        Perform the first transition of the current state whose guards pass.

        Guards of transitions leaving the same state should be mutually
        exclusive; otherwise the order in which they were added decides.

        :return: True if a transition was performed.
        """
        try:
            for transition in self.get_current_state().get_transitions():
                if self._perform_transition(transition, None, check_guards=True):
                    return True
        except Exception as e:
            error = wrap_error(e, PipelineStage.RUN)
            if error is e:
                raise
            raise error from e
        return False

    def run_to_completion(self) -> int:
        """
        Call run_once until no transition is performed. There is no cycle
        detection: guards that keep allowing a loop make this run forever.

        :return: The number of transitions performed.
        """
        count = 0
        try:
            while self.run_once():
                count += 1
        except Exception as e:
            error = wrap_error(e, PipelineStage.RUN_TO_COMPLETION)
            if error is e:
                raise
            raise error from e
        return count

    def can_apply_named(self, name: str) -> bool:
        """
        Check the guards of a named transition without performing it.
        An unknown name is simply not allowed.
        """
        transition = self.get_transition(name)
        if transition is None:
            return False
        return self._check_can_transition(transition, None)

    def can_apply_triggered(self, event: str) -> bool:
        """Whether any transition of the current state triggered by `event` is allowed."""
        for transition in self.get_current_state().get_transitions_triggered_by(event):
            if self._check_can_transition(transition, event):
                return True
        return False

    def has_trigger(self, event: str) -> bool:
        """Whether the current state has a transition triggered by `event`, allowed or not."""
        return len(self.get_current_state().get_transitions_triggered_by(event)) > 0

    def __getattr__(self, name: str):
        """
        Expose every registered trigger as a method, so that `machine.pay()`
        is `machine.apply_triggered("pay")`. Real attributes take precedence.
        """
        transitions = self.__dict__.get("_transitions") or {}
        if not name.startswith("_") and any(t.is_triggered_by(name) for t in transitions.values()):
            return lambda: self.apply_triggered(name)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    # ------------------------------------------------------------------
    # pipeline
    # ------------------------------------------------------------------

    def _perform_transition(self, transition: Transition, event: Optional[str] = None, check_guards: bool = True) -> bool:
        try:
            if check_guards and not self._check_can_transition(transition, event):
                return False
            self._exit_state(transition, event)
            self._do_transition(transition, event)
            self._enter_state(transition, event)
        except Exception as e:
            error = wrap_error(e, PipelineStage.EXIT_TRANSITION_ENTER)
            self._handle_transition_error(transition, error)
            if error is e:
                raise
            raise error from e
        return True

    def _check_can_transition(self, transition: Transition, event: Optional[str] = None) -> bool:
        try:
            if self._transitions.get(transition.name) is not transition:
                logger.debug("transition '%s' is not registered with this machine", transition.name)
                return False
            if not self.get_current_state().has_transition(transition.name):
                logger.debug("transition '%s' does not leave the current state", transition.name)
                return False
            if not self._hooks.check(transition, event):
                return False
            entity = self._context.get_entity()
            if not callbacks_for(entity).on_check_can_transition(transition, event):
                return False
            return transition.can(self._context, event)
        except Exception as e:
            error = wrap_error(e, PipelineStage.CAN_CHECK)
            if error is e:
                raise
            raise error from e

    def _exit_state(self, transition: Transition, event: Optional[str] = None) -> None:
        self._hooks.execute(HookStage.PRE_EXIT, transition, event)
        callbacks_for(self._context.get_entity()).on_exit_state(transition, event)
        transition.state_from.exit_action(self._context, event)

    def _do_transition(self, transition: Transition, event: Optional[str] = None) -> None:
        self._hooks.execute(HookStage.PRE_TRANSITION, transition, event)
        entity = self._context.get_entity()
        callbacks = callbacks_for(entity)
        if event:
            callbacks.on_event(transition, event)
            handler = self._event_handlers.get(event)
            if handler is not None:
                handler(entity, transition, event)
        callbacks.on_transition(transition, event)
        transition.process(self._context, event)
        self.set_state(transition.state_to)
        logger.info("%s performed transition '%s' (event: %s)", self, transition.name, event)

    def _enter_state(self, transition: Transition, event: Optional[str] = None) -> None:
        callbacks_for(self._context.get_entity()).on_enter_state(transition, event)
        transition.state_to.entry_action(self._context, event)
        self._hooks.execute(HookStage.POST_ENTER, transition, event)

    def _handle_transition_error(self, transition: Transition, error: Exception) -> None:
        logger.warning("%s transition '%s' failed: %s", self, transition.name, error)
        self._context.set_failed_transition(transition, error)

    # ------------------------------------------------------------------
    # states and transitions
    # ------------------------------------------------------------------

    def get_states(self) -> Dict[str, State]:
        return dict(self._states)

    def get_state(self, name: str) -> Optional[State]:
        return self._states.get(name)

    def add_state(self, state: State) -> None:
        """
        Add a concrete state without any transition, for instance so that a
        pattern transition added later can expand onto it.

        :raises ValueError: For a pattern state, or a different state with the same name.
        :raises ActionCreationError: If an entry or exit action key is not registered.
        """
        if state.is_regex():
            raise ValueError(f"Pattern state '{state.name}' cannot be added to a machine")
        existing = self._states.get(state.name)
        if existing is state:
            return
        if existing is not None:
            raise ValueError(f"A different state named '{state.name}' is already in the machine")
        state.bind(self._registry)
        self._states[state.name] = state

    def get_transitions(self) -> Dict[str, Transition]:
        return dict(self._transitions)

    def get_transition(self, name: str) -> Optional[Transition]:
        return self._transitions.get(name)

    def add_transition(self, transition: Transition) -> None:
        """
        Add a transition, expanding pattern endpoints against the states
        currently in the machine. A transition expanded from a pattern never
        goes from a state to itself.

        :raises GuardCreationError: If a guard key is not registered.
        :raises ActionCreationError: If an action key is not registered.
        """
        transition.bind(self._registry)
        all_from = transition.state_from.expand(self._states.values())
        all_to = transition.state_to.expand(self._states.values())
        contains_regex = transition.is_regex()

        for state_from in all_from:
            for state_to in all_to:
                if contains_regex and state_from.name == state_to.name:
                    continue
                if contains_regex:
                    self._add_concrete_transition(transition.get_copy(state_from, state_to))
                else:
                    self._add_concrete_transition(transition)
        if contains_regex:
            # a concrete origin holds the copies now, not the pattern transition
            transition.state_from.remove_transition(transition)
            logger.debug("expanded '%s' over %d x %d states", transition.name, len(all_from), len(all_to))

    def _add_concrete_transition(self, transition: Transition) -> None:
        if transition.state_from.is_final():
            logger.debug("ignoring transition '%s' from final state", transition.name)
            transition.state_from.remove_transition(transition)
            return

        state_from = self._merge_state(transition.state_from)
        # the transition registered itself on its own 'from' instance, which
        # may not be the instance this machine holds under that name
        state_from.add_transition(transition)
        self._merge_state(transition.state_to)
        self._transitions[transition.name] = transition

        if self._state is not None:
            self._state = self._states.get(self._state.name, self._state)

    def _merge_state(self, state: State) -> State:
        if state.name not in self._states:
            self.add_state(state)
        return self._states[state.name]

    def get_initial_state(self, allow_missing: bool = False) -> Optional[State]:
        """
        :param allow_missing: Return None instead of raising when there is no initial state.
        :raises NoInitialStateError: If no state is initial and allow_missing is False.
        """
        for state in self._states.values():
            if state.is_initial():
                return state
        if allow_missing:
            return None
        raise NoInitialStateError(
            f"{self} no initial state found, bad configuration. "
            "are the transitions/states loaded and configured correctly?"
        )

    # ------------------------------------------------------------------
    # current state and context
    # ------------------------------------------------------------------

    def get_current_state(self) -> State:
        """
        The state the entity is in, read from the context the first time.

        :raises NoCurrentStateError: If the context's state name is not in the machine.
        """
        if self._state is not None:
            return self._state
        name = self._context.get_state()
        state = self._states.get(name)
        if state is None:
            raise NoCurrentStateError(
                f"{self} current state not found for state with name '{name}'. "
                "are the transitions/states loaded and configured correctly?"
            )
        self._state = state
        return state

    def set_state(self, state: State) -> None:
        """
        Set the current state and persist it, bypassing guards and actions.
        """
        state = self._states.get(state.name, state)
        self._context.set_state(state.name)
        self._state = state

    @property
    def context(self) -> ContextProtocol:
        return self._context

    def set_context(self, context: ContextProtocol) -> None:
        """
        Bind a context. The current state is read again from the new context.

        :raises ContextMismatchError: If the context belongs to another machine.
        """
        if self._context is not None and self._context.get_machine() != context.get_machine():
            raise ContextMismatchError(
                "Trying to set context for a different machine. currently "
                f"'{self._context.get_machine()}' and new '{context.get_machine()}'"
            )
        self._context = context
        self._state = None

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def hooks(self) -> HookManager:
        return self._hooks

    def __str__(self) -> str:
        return f"{type(self).__name__}: [{self._context.get_id(True)}]"
