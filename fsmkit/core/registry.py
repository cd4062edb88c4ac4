# fsmkit/core/registry.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Callable, Dict, List, Optional

from fsmkit.core.errors import ActionCreationError, GuardCreationError
from fsmkit.interfaces.types import Descriptor, Descriptors


def normalize_descriptors(spec: Descriptors) -> List[Descriptor]:
    """
    Turn a guard or action specification into an ordered list of descriptors.

    A comma separated string is split into its keys, a single constructor
    becomes a one element list, and None or an empty string mean "nothing".
    """
    if spec is None:
        return []
    if isinstance(spec, str):
        return [part.strip() for part in spec.split(",") if part.strip()]
    if callable(spec):
        return [spec]
    descriptors: List[Descriptor] = []
    for item in spec:
        if isinstance(item, str):
            descriptors.extend(normalize_descriptors(item))
        else:
            descriptors.append(item)
    return descriptors


def describe(descriptor: Descriptor) -> str:
    """Printable name of a descriptor, for messages and repr."""
    if isinstance(descriptor, str):
        return descriptor
    return getattr(descriptor, "__qualname__", None) or getattr(descriptor, "__name__", None) or repr(descriptor)


class Registry:
    """
    Maps string keys to guard and action constructors.

    A machine resolves the keys used by its transitions and states once, when
    they are registered, so a typo in a key fails while the machine is being
    built rather than on the first transition attempt. Constructors given
    directly as descriptors bypass the lookup.
    """

    def __init__(
        self,
        rules: Optional[Dict[str, Callable[[Any], Any]]] = None,
        commands: Optional[Dict[str, Callable[[Any], Any]]] = None,
    ) -> None:
        self._rules: Dict[str, Callable[[Any], Any]] = {}
        self._commands: Dict[str, Callable[[Any], Any]] = {}
        for key, factory in (rules or {}).items():
            self.register_rule(key, factory)
        for key, factory in (commands or {}).items():
            self.register_command(key, factory)

    @staticmethod
    def _check(key: str, factory: Callable[[Any], Any]) -> None:
        if not key or not isinstance(key, str):
            raise ValueError("Registry key must be a non-empty string")
        if "," in key:
            raise ValueError(f"Registry key '{key}' must not contain ','")
        if not callable(factory):
            raise ValueError(f"Constructor registered under '{key}' must be callable")

    def register_rule(self, key: str, factory: Callable[[Any], Any]) -> None:
        """
        Register a guard constructor.

        :param key: The name transitions use to refer to the guard.
        :param factory: A Rule subclass, or any callable taking the entity and returning a rule.
        """
        self._check(key, factory)
        self._rules[key] = factory

    def register_command(self, key: str, factory: Callable[[Any], Any]) -> None:
        """
        Register an action constructor.

        :param key: The name transitions and states use to refer to the action.
        :param factory: A Command subclass, or any callable taking the entity and returning a command.
        """
        self._check(key, factory)
        self._commands[key] = factory

    def has_rule(self, key: str) -> bool:
        return key in self._rules

    def has_command(self, key: str) -> bool:
        return key in self._commands

    def resolve_rules(self, descriptors: List[Descriptor]) -> List[Callable[[Any], Any]]:
        """
        :raises GuardCreationError: If a key is not registered.
        """
        factories = []
        for descriptor in descriptors:
            if not isinstance(descriptor, str):
                factories.append(descriptor)
            elif descriptor in self._rules:
                factories.append(self._rules[descriptor])
            else:
                raise GuardCreationError(f"failed rule creation, no rule registered as '{descriptor}'")
        return factories

    def resolve_commands(self, descriptors: List[Descriptor]) -> List[Callable[[Any], Any]]:
        """
        :raises ActionCreationError: If a key is not registered.
        """
        factories = []
        for descriptor in descriptors:
            if not isinstance(descriptor, str):
                factories.append(descriptor)
            elif descriptor in self._commands:
                factories.append(self._commands[descriptor])
            else:
                raise ActionCreationError(f"failed command creation, no command registered as '{descriptor}'")
        return factories
