"""Public entry points for registering configuration and resolving beans.

A :class:`Container` owns one provider registry, one singleton cache and one
resolution stack. Applications usually need a single container; the
module-level functions operate on a lazily created default one.
"""

import inspect
import logging
import threading
from typing import Any, Optional, TypeVar

from beanbag.registry import ProviderConflict, TypeRegistry
from beanbag.resolution_stack import ResolutionStack
from beanbag.resolver import BeanResolver
from beanbag.singletons import SingletonCache

__all__ = [
    "Container",
    "get_bean",
    "get_container",
    "register_bean_config",
    "reset_container",
    "unregister_bean_config",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Container:
    """An inversion-of-control container.

    Args:
        registry: Provider registry to use; a fresh one if omitted.
        singletons: Singleton cache to use; a fresh one if omitted. Passing the
            same cache to several containers shares their singletons.
        compute_once: Construct each singleton type at most once, even under
            concurrent first requests. See :class:`~beanbag.resolver.BeanResolver`.

    Example:
        >>> container = Container()
        >>> container.register_bean_config(AppConfig)
        >>> service = container.get_bean(OrderService)
    """

    def __init__(
        self,
        registry: Optional[TypeRegistry] = None,
        singletons: Optional[SingletonCache] = None,
        compute_once: bool = False,
    ):
        self.registry = registry if registry is not None else TypeRegistry()
        self.singletons = singletons if singletons is not None else SingletonCache()
        self._stack = ResolutionStack()
        self._resolver = BeanResolver(
            self.registry, self.singletons, self._stack, compute_once
        )

    def register_bean_config(self, config: Any) -> list[ProviderConflict]:
        """Register the bean providers declared by a configuration object.

        Args:
            config: A configuration object, or a configuration class, which is
                first resolved through this container like any other bean.

        Returns:
            Conflicts with previously registered providers. Each conflict has
            already been logged, and the new provider has replaced the old one.
        """
        if inspect.isclass(config):
            config = self.get_bean(config)
        return self.registry.register(config)

    def unregister_bean_config(self, config: Any):
        """Withdraw the providers declared directly on ``config``'s class."""
        self.registry.unregister(config)

    def get_bean(self, bean_type: type[T], *args: Any) -> T:
        """Resolve an instance of ``bean_type``.

        Raises:
            CircularDependencyError: If the type's injection graph has a cycle.
            NullResolutionError: If no instance could be produced.
        """
        return self._resolver.get_bean(bean_type, *args)

    def resolution_stack(self) -> tuple:
        """The types currently being resolved on the calling thread."""
        return self._stack.current()


_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get the default container, creating it on first use."""
    global _container
    with _container_lock:
        if _container is None:
            _container = Container()
            logger.debug("Created default container")
        return _container


def reset_container(container: Optional[Container] = None) -> Container:
    """Replace the default container, by default with a fresh one."""
    global _container
    with _container_lock:
        _container = container if container is not None else Container()
        return _container


def register_bean_config(config: Any) -> list[ProviderConflict]:
    return get_container().register_bean_config(config)


def unregister_bean_config(config: Any):
    get_container().unregister_bean_config(config)


def get_bean(bean_type: type[T], *args: Any) -> T:
    return get_container().get_bean(bean_type, *args)
