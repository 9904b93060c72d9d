"""
Hook manager for lifecycle events.
"""
from __future__ import annotations

from typing import Callable, Any, Awaitable, TypeVar, ParamSpec
from dataclasses import dataclass, field
from enum import IntEnum
from collections import defaultdict
import logging

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class HookPriority(IntEnum):
    """Hook execution priority (lower runs first)."""
    FIRST = 0
    EARLY = 25
    NORMAL = 50
    LATE = 75
    LAST = 100


@dataclass
class Hook:
    """Registered hook information."""
    name: str
    handler: Callable[..., Awaitable[Any]]
    priority: HookPriority = HookPriority.NORMAL


@dataclass
class HookResult:
    """Result from running hooks."""
    hook_name: str
    results: list[Any] = field(default_factory=list)
    errors: list[tuple[str, Exception]] = field(default_factory=list)


class HookManager:
    """
    Manages lifecycle hooks.

    Predefined hooks:
    - invitation.created: Invited user was persisted (user, inviter)
    - invitation.accepted: Invitation was accepted (user)

    Example usage:
    ```python
    @hooks.on("invitation.created")
    async def send_invitation_email(user, inviter):
        await mailer.send_invitation(user.email, user.invitation_token)
    ```
    """

    def __init__(self):
        self._hooks: dict[str, list[Hook]] = defaultdict(list)

    def register(
        self,
        name: str,
        handler: Callable[..., Awaitable[Any]],
        *,
        priority: HookPriority = HookPriority.NORMAL,
    ) -> Hook:
        """Register a hook handler."""
        hook = Hook(name=name, handler=handler, priority=priority)

        self._hooks[name].append(hook)
        # Sort by priority
        self._hooks[name].sort(key=lambda h: h.priority)

        logger.debug(f"Registered hook: {name} (priority={priority})")
        return hook

    def unregister(self, name: str, handler: Callable) -> bool:
        """Unregister a hook handler."""
        hooks = self._hooks.get(name, [])
        for i, hook in enumerate(hooks):
            if hook.handler is handler:
                del hooks[i]
                return True
        return False

    def on(
        self,
        name: str,
        *,
        priority: HookPriority = HookPriority.NORMAL,
    ) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
        """Decorator to register a hook handler."""
        def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
            self.register(name, func, priority=priority)
            return func
        return decorator

    async def trigger(self, name: str, *args, **kwargs) -> HookResult:
        """
        Trigger all handlers for a hook.

        Handler errors are logged and collected, never raised.
        """
        result = HookResult(hook_name=name)

        for hook in list(self._hooks.get(name, [])):
            try:
                result.results.append(await hook.handler(*args, **kwargs))
            except Exception as e:
                result.errors.append((getattr(hook.handler, "__qualname__", repr(hook.handler)), e))
                logger.error(f"Hook {name} handler error: {e}")

        return result

    def has_hooks(self, name: str) -> bool:
        """Check if any hooks are registered for name."""
        return bool(self._hooks.get(name))

    def clear(self, name: str | None = None) -> None:
        """Clear hooks. If name given, clear only that hook."""
        if name:
            self._hooks.pop(name, None)
        else:
            self._hooks.clear()


# Global hook manager instance
hooks = HookManager()
