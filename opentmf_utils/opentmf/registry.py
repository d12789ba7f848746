"""
Backend Registry

Maps backend names to OpenTMF context implementations, so the CLI can run
against libopentmf or against the mock registry without code changes.
"""

import logging
from typing import Any, Dict, List, Type

from opentmf_utils.exceptions import BackendNotFoundError
from .base import BaseContext
from .mock import MockContext
from .native import NativeContext

logger = logging.getLogger(__name__)


class BackendRegistry:
    """
    Registry of OpenTMF context implementations

    Example:
        registry = BackendRegistry()
        registry.register("mock", MockContext)

        ctx = registry.create("mock", settings)
        ctx.init()
    """

    def __init__(self):
        self._backends: Dict[str, Type[BaseContext]] = {}

    def register(self, name: str, context_class: Type[BaseContext]) -> None:
        """
        Register a context implementation

        Args:
            name: Backend identifier (e.g., "native", "mock")
            context_class: Class inheriting from BaseContext

        Raises:
            TypeError: If context_class doesn't inherit from BaseContext
        """
        if not isinstance(context_class, type) or not issubclass(context_class, BaseContext):
            raise TypeError(
                f"Backend class {getattr(context_class, '__name__', context_class)} "
                f"must inherit from BaseContext"
            )

        if name in self._backends:
            logger.warning(f"Backend '{name}' already registered, overwriting")

        self._backends[name] = context_class
        logger.debug(f"Registered backend: {name} -> {context_class.__name__}")

    def unregister(self, name: str) -> None:
        """
        Unregister a backend

        Raises:
            KeyError: If backend not found
        """
        if name not in self._backends:
            raise KeyError(f"Backend '{name}' not registered")

        del self._backends[name]
        logger.debug(f"Unregistered backend: {name}")

    def create(self, name: str, settings) -> BaseContext:
        """
        Instantiate an uninitialized context by backend name

        Args:
            name: Backend identifier
            settings: Application settings handed to from_settings()

        Raises:
            BackendNotFoundError: If backend not registered
        """
        if name not in self._backends:
            raise BackendNotFoundError(name, self.list_backends())

        context_class = self._backends[name]
        context = context_class.from_settings(settings)

        logger.debug(f"Created context: {name} ({context_class.__name__})")
        return context

    def list_backends(self) -> List[str]:
        """
        List all registered backend names

        Example:
            >>> registry.list_backends()
            ['mock', 'native']
        """
        return sorted(self._backends.keys())

    def get_backend_info(self, name: str) -> Dict[str, Any]:
        """
        Get information about a registered backend

        Raises:
            KeyError: If backend not found
        """
        if name not in self._backends:
            raise KeyError(f"Backend '{name}' not registered")

        context_class = self._backends[name]

        return {
            "name": name,
            "class": context_class.__name__,
            "module": context_class.__module__,
            "docstring": context_class.__doc__,
        }


# Global registry instance
registry = BackendRegistry()
registry.register("native", NativeContext)
registry.register("mock", MockContext)


def get_registry() -> BackendRegistry:
    """Get the global backend registry"""
    return registry
