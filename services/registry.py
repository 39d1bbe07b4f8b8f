"""
Service Registry - holds the engine's collaborators for the Flask app
Services are registered as instances or as lazily-invoked factories
"""
from typing import Dict, Any, Callable


class ServiceRegistry:
    """
    Name -> service lookup attached to the app as `app.services`.

    Factories run on first `get` and their result is cached until
    `reset_service` is called.
    """

    def __init__(self):
        self._services: Dict[str, Any] = {}
        self._factories: Dict[str, Callable] = {}

    def register(self, name: str, service: Any) -> None:
        """
        Register a service instance directly (replaces any cached instance).

        Args:
            name: Service identifier
            service: Service instance
        """
        self._services[name] = service

    def register_factory(self, name: str, factory: Callable) -> None:
        """
        Register a factory for lazy instantiation.

        Args:
            name: Service identifier
            factory: Zero-argument callable returning the service
        """
        self._factories[name] = factory
        self._services.pop(name, None)

    def get(self, name: str) -> Any:
        """
        Get a service by name, building it from its factory on first use.

        Raises:
            ValueError: If service is not registered
        """
        if name in self._services:
            return self._services[name]

        if name in self._factories:
            self._services[name] = self._factories[name]()
            return self._services[name]

        raise ValueError(f"Service '{name}' is not registered")

    def reset_service(self, name: str) -> None:
        """Drop the cached instance so the factory runs again on next get"""
        if name in self._services:
            del self._services[name]

    def list_services(self) -> list:
        all_services = set(self._services.keys()) | set(self._factories.keys())
        return sorted(all_services)
