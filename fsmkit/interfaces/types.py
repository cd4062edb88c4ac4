# fsmkit/interfaces/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable, Optional, Sequence, Union

StateName = str
TransitionName = str
EventName = str

# A guard or action is named either by a registry key or by its constructor.
Descriptor = Union[str, Callable[[Any], Any]]
Descriptors = Union[None, str, Descriptor, Sequence[Descriptor]]

# Callback Types
EntityCallback = Callable[[Any, Optional[EventName]], None]
HookCallback = Callable[..., Any]
EventHandler = Callable[[Any, Any, EventName], None]
