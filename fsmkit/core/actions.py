# fsmkit/core/actions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from fsmkit.core.errors import ActionCreationError
from fsmkit.interfaces.protocols import EventAware


class Command(ABC):
    """
    An action executed as part of a transition, or when a state is entered or
    exited. Constructed with the entity it acts upon.
    """

    def __init__(self, entity: Any = None) -> None:
        """
        :param entity: The domain object the action operates on.
        """
        self._entity = entity

    @property
    def entity(self) -> Any:
        return self._entity

    @abstractmethod
    def execute(self) -> None:
        """Perform the action."""

    def __str__(self) -> str:
        return type(self).__name__


class NullCommand(Command):
    """Does nothing. Used when no actions are configured."""

    def execute(self) -> None:
        pass


class CompositeCommand(Command):
    """
    Executes a sequence of commands in order. A failure stops the sequence;
    commands that already ran are not undone.
    """

    def __init__(self, commands: Optional[List[Command]] = None) -> None:
        super().__init__()
        self._commands: List[Command] = list(commands or [])

    def add(self, command: Command) -> None:
        self._commands.append(command)

    def remove(self, command: Command) -> None:
        self._commands.remove(command)

    def __contains__(self, command: Command) -> bool:
        return command in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def execute(self) -> None:
        for command in self._commands:
            command.execute()

    def __str__(self) -> str:
        return f"{type(self).__name__}[{', '.join(str(c) for c in self._commands)}]"


def build_command(
    factories: List[Callable[[Any], Command]],
    names: List[str],
    entity: Any,
    event: Optional[str] = None,
) -> Command:
    """
    Construct every action with the entity and compose them.

    :param factories: Action constructors, in execution order.
    :param names: Printable descriptor for each factory, used in error messages.
    :param entity: The domain object handed to each constructor.
    :param event: The triggering event, set on event-aware actions.
    :return: NullCommand for no actions, the single command for one, else a CompositeCommand.
    :raises ActionCreationError: If a constructor refuses the entity.
    """
    commands = []
    for factory, name in zip(factories, names):
        try:
            command = factory(entity)
        except Exception as e:
            raise ActionCreationError(
                f"failed command creation, '{name}' objects to construction with entity: {e}"
            ) from e
        if isinstance(command, EventAware):
            command.set_event(event)
        commands.append(command)

    if not commands:
        return NullCommand(entity)
    if len(commands) == 1:
        return commands[0]
    return CompositeCommand(commands)
