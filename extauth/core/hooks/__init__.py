"""
Lifecycle hooks.

Outer layers (mailers, audit, web) subscribe to events emitted by the
core without the core depending on them.
"""

from .manager import HookManager, HookPriority, HookResult, hooks

__all__ = ["HookManager", "HookPriority", "HookResult", "hooks"]
