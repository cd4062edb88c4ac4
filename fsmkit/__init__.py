"""fsmkit: finite state machine engine for domain entities

Given named states and named transitions between them, fsmkit decides whether
a transition is allowed for an entity and, if so, runs its exit, transition
and entry logic and commits the new state.

Responsibilities:
    - Moore style transitions requested by name
    - Mealy style transitions selected by trigger
    - Run-to-completion over guarded transitions
    - Bulk registration of transitions between pattern states

Interactions:
    - Client code through StateMachine and Context
    - Guards and actions supplied by the application through a Registry
    - A persistence adapter holding each entity's state name
    - Logging system for diagnostics (module level loggers, no handlers installed)
"""

from fsmkit.core import (
    ActionCreationError,
    ActionExecutionError,
    AndRule,
    Command,
    CompositeCommand,
    ContextMismatchError,
    ErrorCode,
    FalseRule,
    GenericPipelineError,
    GuardCreationError,
    GuardEvaluationError,
    HookManager,
    HookStage,
    NoCurrentStateError,
    NoInitialStateError,
    NullCommand,
    PipelineStage,
    Registry,
    Rule,
    State,
    StateMachine,
    StateMachineError,
    StateType,
    Transition,
    TransitionCallbacks,
    TransitionNotFoundError,
    TrueRule,
)
from fsmkit.runtime.context import Context, Identifier, MemoryAdapter, PersistenceAdapter

__version__ = "0.1.0"

__all__ = [
    "ActionCreationError",
    "ActionExecutionError",
    "AndRule",
    "Command",
    "CompositeCommand",
    "Context",
    "ContextMismatchError",
    "ErrorCode",
    "FalseRule",
    "GenericPipelineError",
    "GuardCreationError",
    "GuardEvaluationError",
    "HookManager",
    "HookStage",
    "Identifier",
    "MemoryAdapter",
    "NoCurrentStateError",
    "NoInitialStateError",
    "NullCommand",
    "PersistenceAdapter",
    "PipelineStage",
    "Registry",
    "Rule",
    "State",
    "StateMachine",
    "StateMachineError",
    "StateType",
    "Transition",
    "TransitionCallbacks",
    "TransitionNotFoundError",
    "TrueRule",
]
