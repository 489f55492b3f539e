"""IoC container wiring the settings and process runner used by sysshim helpers."""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type, TypeVar

T = TypeVar("T")


@dataclass
class ServiceRegistration:
    """Registration info for a service."""

    factory: Callable[["DependencyContainer"], Any]
    singleton: bool = True
    instance: Optional[Any] = None


class DependencyContainer:
    """
    Minimal IoC container. Factories receive the container so they can
    resolve their own dependencies.

    Usage:
        container = DependencyContainer()
        container.register(SysshimSettings, lambda c: SysshimSettings.from_env())
        container.register(ProcessRunner, lambda c: SubprocessRunner(c.resolve(SysshimSettings)))
        runner = container.resolve(ProcessRunner)
    """

    def __init__(self):
        self._registrations: Dict[Type, ServiceRegistration] = {}
        self._lock = threading.RLock()

    def register(
        self,
        interface: Type[T],
        factory: Optional[Callable[["DependencyContainer"], T]] = None,
        singleton: bool = True,
        instance: Optional[T] = None,
    ) -> "DependencyContainer":
        """Register a factory, or a ready-made instance, for *interface*."""
        if instance is not None:
            registration = ServiceRegistration(
                factory=lambda _: instance, singleton=True, instance=instance
            )
        elif factory is not None:
            registration = ServiceRegistration(factory=factory, singleton=singleton)
        else:
            raise ValueError("Must provide factory or instance")

        with self._lock:
            self._registrations[interface] = registration
        return self

    def resolve(self, interface: Type[T]) -> T:
        """Resolve a service instance."""
        with self._lock:
            reg = self._registrations.get(interface)
            if reg is None:
                raise KeyError(f"No registration for {interface}")

            if reg.singleton and reg.instance is not None:
                return reg.instance

            instance = reg.factory(self)
            if reg.singleton:
                reg.instance = instance
            return instance

    def has(self, interface: Type) -> bool:
        """Check if service is registered."""
        return interface in self._registrations

    def reset(self) -> None:
        """Drop singleton instances built by factories."""
        with self._lock:
            for reg in self._registrations.values():
                reg.instance = None


_container: Optional[DependencyContainer] = None
_container_lock = threading.Lock()


def get_container() -> DependencyContainer:
    """Get the global container, building the default one on first use."""
    global _container
    with _container_lock:
        if _container is None:
            _container = create_default_container()
        return _container


def set_container(container: Optional[DependencyContainer]) -> None:
    """Set the global container (useful for testing)."""
    global _container
    with _container_lock:
        _container = container


def create_default_container() -> DependencyContainer:
    """Create container with default registrations."""
    from .backends.subprocess_runner import SubprocessRunner
    from .config import SysshimSettings
    from .interfaces.process import ProcessRunner

    container = DependencyContainer()
    container.register(SysshimSettings, lambda c: SysshimSettings.from_env())
    container.register(
        ProcessRunner, lambda c: SubprocessRunner(settings=c.resolve(SysshimSettings))
    )
    return container


def get_runner():
    """Return the process runner registered in the global container."""
    from .interfaces.process import ProcessRunner

    return get_container().resolve(ProcessRunner)
