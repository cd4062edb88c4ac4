# fsmkit/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from enum import Enum, IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Numeric codes carried by every StateMachineError."""

    RULE_CREATION_FAILURE = 1
    RULE_APPLY_FAILURE = 2
    COMMAND_CREATION_FAILURE = 3
    COMMAND_EXECUTION_FAILURE = 4
    NO_TRANSITION_FOUND = 10
    NO_CURRENT_STATE_FOUND = 11
    NO_INITIAL_STATE_FOUND = 12
    CONTEXT_DIFFERENT_MACHINE = 13
    PIPELINE_FAILURE = 20


class PipelineStage(Enum):
    """The part of the pipeline a wrapped foreign error surfaced in."""

    CAN_CHECK = "can-check"
    EXIT_TRANSITION_ENTER = "exit-transition-enter"
    RUN = "run"
    RUN_TO_COMPLETION = "run-to-completion"


class StateMachineError(Exception):
    """
    Base exception class for errors within the state machine engine.
    """

    code: ErrorCode = ErrorCode.PIPELINE_FAILURE

    def __init__(self, message: str = "", code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class TransitionNotFoundError(StateMachineError):
    """
    Raised when a transition is requested by a name the machine does not know.
    """

    code = ErrorCode.NO_TRANSITION_FOUND


class NoCurrentStateError(StateMachineError):
    """
    Raised when the state name held by the context is not in the loaded states.
    """

    code = ErrorCode.NO_CURRENT_STATE_FOUND


class NoInitialStateError(StateMachineError):
    """
    Raised when no state in the machine is of the initial type.
    """

    code = ErrorCode.NO_INITIAL_STATE_FOUND


class GuardCreationError(StateMachineError):
    """
    Raised when a guard cannot be resolved or refuses construction with the entity.
    """

    code = ErrorCode.RULE_CREATION_FAILURE


class GuardEvaluationError(StateMachineError):
    """
    Raised when a guard fails while deciding whether it applies.
    """

    code = ErrorCode.RULE_APPLY_FAILURE


class ActionCreationError(StateMachineError):
    """
    Raised when an action cannot be resolved or refuses construction with the entity.
    """

    code = ErrorCode.COMMAND_CREATION_FAILURE


class ActionExecutionError(StateMachineError):
    """
    Raised when an action, or a transition/state callback, fails while executing.
    """

    code = ErrorCode.COMMAND_EXECUTION_FAILURE


class ContextMismatchError(StateMachineError):
    """
    Raised when a machine is rebound to a context of a different machine.
    """

    code = ErrorCode.CONTEXT_DIFFERENT_MACHINE


class GenericPipelineError(StateMachineError):
    """
    Wraps a foreign exception that escaped from somewhere in the pipeline.
    """

    code = ErrorCode.PIPELINE_FAILURE

    def __init__(self, message: str = "", stage: PipelineStage = PipelineStage.EXIT_TRANSITION_ENTER) -> None:
        super().__init__(message)
        self.stage = stage


def wrap_error(error: Exception, stage: PipelineStage) -> StateMachineError:
    """
    Normalize an exception into the engine's taxonomy.

    Engine errors are returned unchanged; anything else is wrapped in a
    GenericPipelineError tagged with the stage it escaped from.

    :param error: The exception that was caught.
    :param stage: The pipeline stage that caught it.
    :return: A StateMachineError suitable for re-raising.
    """
    if isinstance(error, StateMachineError):
        return error
    return GenericPipelineError(f"{type(error).__name__}: {error}", stage=stage)
