# fsmkit/core/hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from fsmkit.interfaces.types import HookCallback

if TYPE_CHECKING:
    from fsmkit.core.transitions import Transition


class HookStage(Enum):
    """Points in the transition pipeline where hooks run."""

    PRE_CHECK = "pre_check"
    PRE_EXIT = "pre_exit"
    PRE_TRANSITION = "pre_transition"
    POST_ENTER = "post_enter"


class HookManager:
    """
    Manages the registration and execution of hooks that listen to the
    transition pipeline. Users can attach logging, auditing, or extra guards
    without subclassing the state machine.

    Each hook is called with (transition, event). PRE_CHECK hooks return a
    bool and can veto the transition; the return value of the others is
    ignored. Hooks of one stage run in registration order.
    """

    def __init__(self, hooks: Optional[Dict[HookStage, List[HookCallback]]] = None) -> None:
        """
        Initialize with an optional mapping of stage to callbacks.
        """
        self._hooks: Dict[HookStage, List[HookCallback]] = {stage: [] for stage in HookStage}
        for stage, callbacks in (hooks or {}).items():
            for callback in callbacks:
                self.register(stage, callback)

    def register(self, stage: HookStage, callback: HookCallback) -> None:
        """
        Add a callback to the end of a stage.

        :param stage: The pipeline stage to run at.
        :param callback: Called with (transition, event).
        """
        if not isinstance(stage, HookStage):
            raise ValueError("Hook stage must be a HookStage enum value")
        if not callable(callback):
            raise ValueError("Hook must be callable")
        self._hooks[stage].append(callback)

    def unregister(self, stage: HookStage, callback: HookCallback) -> None:
        self._hooks[stage].remove(callback)

    def get_hooks(self, stage: HookStage) -> List[HookCallback]:
        return list(self._hooks[stage])

    def check(self, transition: "Transition", event: Optional[str] = None) -> bool:
        """
        Run the PRE_CHECK hooks, stopping at the first that returns False.
        """
        for callback in self._hooks[HookStage.PRE_CHECK]:
            if not callback(transition, event):
                return False
        return True

    def execute(self, stage: HookStage, transition: "Transition", event: Optional[str] = None) -> None:
        """
        Run every hook of a non-checking stage.
        """
        for callback in self._hooks[stage]:
            callback(transition, event)
