"""Registry of bean providers contributed by configuration objects.

A configuration object is any instance whose class (or a direct base class)
declares methods marked with ``@bean_provider``. Each such method becomes the
factory for its declared return type. The registry holds at most one provider
per type: a later registration for the same type replaces the earlier one
and is reported as a :class:`ProviderConflict`.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from beanbag.domain import TypeKey, type_name
from beanbag.errors import CircularDependencyError, ProviderInvocationError
from beanbag.introspection import (
    configuration_classes,
    declared_provider_methods,
    provided_type,
)

__all__ = [
    "BeanProvider",
    "ProviderConflict",
    "TypeRegistry",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeanProvider:
    """A provider method bound to the configuration object that declared it.

    Attributes:
        provided_type: The declared return type, which is also the registry key.
        name: The method name.
        func: The declaring provider function.
        config: The configuration object. The provider is looked up on it by
            name when invoked, so an override in a subclass takes precedence
            over an abstract or base declaration.
    """

    provided_type: TypeKey
    name: str
    func: Callable
    config: Any

    def __call__(self) -> Optional[Any]:
        """Invoke the provider, reporting and absorbing any failure.

        Returns:
            The provided instance, or ``None`` if the provider raised.

        Raises:
            CircularDependencyError: If the provider resolved a bean that is
                already being resolved on the calling thread.
        """
        try:
            return getattr(self.config, self.name)()
        except CircularDependencyError:
            raise
        except Exception as e:
            error = ProviderInvocationError(self.provided_type, self.name, self.config)
            logger.error("%s", error, exc_info=e)
            return None


@dataclass(frozen=True)
class ProviderConflict:
    """Record of one provider replacing another for the same type.

    Attributes:
        provided_type: The contested type.
        replaced: The provider that was registered before.
        replacement: The provider now registered.
    """

    provided_type: TypeKey
    replaced: BeanProvider
    replacement: BeanProvider

    def __str__(self):
        return (
            f"Bean provider conflict for {type_name(self.provided_type)}: "
            f"{self.replaced.name} of {type(self.replaced.config).__qualname__} "
            f"replaced by {self.replacement.name} "
            f"of {type(self.replacement.config).__qualname__}"
        )


class TypeRegistry:
    """Thread-safe map from provided type to the provider producing it."""

    def __init__(self):
        self._providers: dict[TypeKey, BeanProvider] = {}
        self._lock = threading.RLock()

    def register(self, config: Any) -> list[ProviderConflict]:
        """Register every provider declared by a configuration object.

        Scans the object's class and its direct base classes (excluding
        ``object``) for ``@bean_provider`` methods.

        Args:
            config: The configuration object providers are bound to.

        Returns:
            The conflicts caused by this registration, in registration order.
        """
        conflicts = []
        for cls in configuration_classes(type(config)):
            for name, func in declared_provider_methods(cls):
                try:
                    bean_type = provided_type(func)
                except NameError as e:
                    logger.warning(
                        "Ignoring bean provider %s.%s: unresolvable return type (%s)",
                        cls.__qualname__,
                        name,
                        e,
                    )
                    continue
                if bean_type is None:
                    logger.warning(
                        "Ignoring bean provider %s.%s: no return type annotation",
                        cls.__qualname__,
                        name,
                    )
                    continue

                conflict = self._put(BeanProvider(bean_type, name, func, config))
                if conflict:
                    logger.warning("%s", conflict)
                    conflicts.append(conflict)

        return conflicts

    def unregister(self, config: Any):
        """Remove the providers keyed by the methods ``config``'s own class declares.

        Base classes are not scanned, so providers contributed by a base
        class of the configuration object remain registered.
        """
        for name, func in declared_provider_methods(type(config)):
            try:
                bean_type = provided_type(func)
            except NameError:
                # Never registered, see register.
                continue
            with self._lock:
                removed = self._providers.pop(bean_type, None)
            if removed:
                logger.debug("Unregistered provider %s for %s", name, type_name(bean_type))

    def lookup(self, bean_type: TypeKey) -> Optional[BeanProvider]:
        with self._lock:
            return self._providers.get(bean_type)

    def registered_providers(self) -> dict[TypeKey, BeanProvider]:
        """Snapshot of the current provider map."""
        with self._lock:
            return dict(self._providers)

    def _put(self, provider: BeanProvider) -> Optional[ProviderConflict]:
        with self._lock:
            replaced = self._providers.get(provider.provided_type)
            self._providers[provider.provided_type] = provider

        logger.debug(
            "Registered provider %s for %s",
            provider.name,
            type_name(provider.provided_type),
        )
        if replaced is None:
            return None
        return ProviderConflict(provider.provided_type, replaced, provider)
