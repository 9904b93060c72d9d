"""
Extension registry.

Resolves configured extension identifiers to extension values and filters
them by capability. Extensions register themselves with a decorator:

    @ExtensionRegistry.register("invitation")
    class InvitationExtension(Extension):
        ...

Identifiers in config may be:
- a registered name ("invitation")
- an import path ("my_app.extensions:AuditExtension")
- an Extension subclass or instance, or any object with capability functions

A bare name that is not registered yet is looked up as the module
`extauth.extensions.<name>`; importing it registers the extension.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable
import importlib
import logging

from extauth.core.config import ExtensionConfig
from .interfaces import Capability, Extension, implements, extension_name

logger = logging.getLogger(__name__)

EXTENSIONS_PACKAGE = "extauth.extensions"


class UnknownExtensionError(ValueError):
    """Configured extension could not be resolved."""


class DuplicateExtensionError(ValueError):
    """Configured identifiers resolve to the same extension."""


class ExtensionRegistry:
    """Central registry for extensions."""

    _extensions: dict[str, type[Extension]] = {}

    # ============================================================
    # REGISTRATION
    # ============================================================

    @classmethod
    def register(cls, name: str) -> Callable[[type[Extension]], type[Extension]]:
        """
        Decorator to register an extension class.

        Usage:
            @ExtensionRegistry.register("invitation")
            class InvitationExtension(Extension):
                ...
        """
        def decorator(extension_class: type[Extension]) -> type[Extension]:
            if name in cls._extensions and cls._extensions[name] is not extension_class:
                logger.warning(f"Overwriting existing extension: {name}")
            if not extension_class.name:
                extension_class.name = name
            cls._extensions[name] = extension_class
            _resolve_all.cache_clear()
            logger.debug(f"Registered extension: {name}")
            return extension_class
        return decorator

    @classmethod
    def unregister(cls, name: str) -> bool:
        """Unregister an extension."""
        if name in cls._extensions:
            del cls._extensions[name]
            _resolve_all.cache_clear()
            return True
        return False

    # ============================================================
    # RESOLUTION
    # ============================================================

    @classmethod
    def resolve(cls, identifier: Any) -> Any:
        """
        Resolve one identifier to an extension value.

        Raises:
            UnknownExtensionError: If the identifier cannot be resolved
        """
        if isinstance(identifier, type):
            return identifier() if issubclass(identifier, Extension) else identifier
        if not isinstance(identifier, str):
            return identifier

        if identifier in cls._extensions:
            return cls._extensions[identifier]()

        if ":" in identifier:
            return cls._import_path(identifier)

        module_name = f"{EXTENSIONS_PACKAGE}.{identifier}"
        try:
            importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            if e.name is None or not module_name.startswith(e.name):
                raise
        if identifier in cls._extensions:
            return cls._extensions[identifier]()

        available = list(cls._extensions.keys())
        raise UnknownExtensionError(
            f"Unknown extension: '{identifier}'. "
            f"Available: {available}"
        )

    @classmethod
    def _import_path(cls, path: str) -> Any:
        module_name, _, attr = path.partition(":")
        try:
            module = importlib.import_module(module_name)
            target = getattr(module, attr) if attr else module
        except (ImportError, AttributeError) as e:
            raise UnknownExtensionError(f"Unknown extension: '{path}' ({e})") from e
        return cls.resolve(target) if isinstance(target, type) else target

    @classmethod
    def discover(cls, config: ExtensionConfig, capability: Capability) -> list[Any]:
        """
        Extensions from config that implement a capability, in config order.

        Extensions without the capability are skipped silently.
        """
        return [
            extension
            for extension in _resolve(tuple(config.extensions))
            if implements(extension, capability)
        ]

    # ============================================================
    # INTROSPECTION
    # ============================================================

    @classmethod
    def list(cls) -> list[str]:
        """List all registered extension names."""
        return list(cls._extensions.keys())

    @classmethod
    def has(cls, name: str) -> bool:
        """Check if an extension is registered."""
        return name in cls._extensions


@lru_cache(maxsize=64)
def _resolve_all(identifiers: tuple[Any, ...]) -> tuple[Any, ...]:
    return _resolve_uncached(identifiers)


def _resolve(identifiers: tuple[Any, ...]) -> tuple[Any, ...]:
    # Plain objects (namespaces, eq-only dataclasses) may not be hashable
    try:
        hash(identifiers)
    except TypeError:
        return _resolve_uncached(identifiers)
    return _resolve_all(identifiers)


def _resolve_uncached(identifiers: tuple[Any, ...]) -> tuple[Any, ...]:
    extensions = tuple(ExtensionRegistry.resolve(identifier) for identifier in identifiers)
    _check_distinct(identifiers, extensions)
    logger.info(
        "Resolved extensions: "
        + ", ".join(extension_name(extension) for extension in extensions)
    )
    return extensions


def _check_distinct(identifiers: tuple[Any, ...], extensions: tuple[Any, ...]) -> None:
    """Two identifiers must not resolve to the same extension."""
    seen: dict[Any, Any] = {}
    for identifier, extension in zip(identifiers, extensions):
        key = type(extension) if isinstance(extension, Extension) else id(extension)
        if key in seen:
            raise DuplicateExtensionError(
                f"Extension {extension_name(extension)} is configured twice: "
                f"{seen[key]!r} and {identifier!r}"
            )
        seen[key] = identifier
