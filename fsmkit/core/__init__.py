"""
Core package providing the state machine engine.

Architecture:
- States and the transitions that leave them
- Guards (rules) and actions (commands), resolved through a registry
- The StateMachine orchestrating the transition pipeline
"""

# Import order matters to avoid circular dependencies
from .errors import (
    ActionCreationError,
    ActionExecutionError,
    ContextMismatchError,
    ErrorCode,
    GenericPipelineError,
    GuardCreationError,
    GuardEvaluationError,
    NoCurrentStateError,
    NoInitialStateError,
    PipelineStage,
    StateMachineError,
    TransitionNotFoundError,
)
from .guards import AndRule, FalseRule, Rule, TrueRule
from .actions import Command, CompositeCommand, NullCommand
from .registry import Registry
from .states import State, StateType
from .transitions import SEPARATOR, Transition, transition_name
from .callbacks import TransitionCallbacks
from .hooks import HookManager, HookStage
from .state_machine import StateMachine

__all__ = [
    # Errors
    "StateMachineError",
    "ErrorCode",
    "PipelineStage",
    "TransitionNotFoundError",
    "NoCurrentStateError",
    "NoInitialStateError",
    "GuardCreationError",
    "GuardEvaluationError",
    "ActionCreationError",
    "ActionExecutionError",
    "ContextMismatchError",
    "GenericPipelineError",
    # Guards and actions
    "Rule",
    "TrueRule",
    "FalseRule",
    "AndRule",
    "Command",
    "NullCommand",
    "CompositeCommand",
    "Registry",
    # States and transitions
    "State",
    "StateType",
    "Transition",
    "transition_name",
    "SEPARATOR",
    # Orchestration
    "TransitionCallbacks",
    "HookManager",
    "HookStage",
    "StateMachine",
]
