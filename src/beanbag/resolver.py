"""Resolution of beans: construction, field injection and singleton caching.

Resolving a type walks its injection points depth first, resolving each
field's declared type through the same resolver. The calling thread's
:class:`~beanbag.resolution_stack.ResolutionStack` records the walk so that a
type requested while it is still being built fails fast with a
:class:`~beanbag.errors.CircularDependencyError` instead of recursing forever.
"""

import dataclasses
import inspect
import logging
from typing import Any, Optional

from beanbag.domain import InjectionPoint, TypeKey, type_name
from beanbag.errors import (
    CircularDependencyError,
    ConstructorError,
    FinalFieldError,
    InaccessibleConstructorError,
    MissingConstructorError,
    NullResolutionError,
)
from beanbag.introspection import constructor_candidates, injection_points
from beanbag.markers import is_singleton
from beanbag.registry import TypeRegistry
from beanbag.resolution_stack import ResolutionStack
from beanbag.singletons import SingletonCache

__all__ = ["BeanResolver"]

logger = logging.getLogger(__name__)


class BeanResolver:
    """Produces fully injected instances of requested types.

    Args:
        registry: Providers consulted before falling back to plain construction.
        singletons: Cache of singleton-scoped instances.
        stack: Per-thread resolution stack used for cycle detection.
        compute_once: Serialise creation of each singleton type so that it is
            constructed exactly once, even when several threads request it
            concurrently. When off, concurrent first requests may each build
            an instance and the cache keeps the last one written. Cycle
            detection is per thread: with this on, two singletons that inject
            each other, first requested from two different threads at once,
            deadlock on each other's creation lock instead of raising
            :class:`~beanbag.errors.CircularDependencyError`.
    """

    def __init__(
        self,
        registry: TypeRegistry,
        singletons: SingletonCache,
        stack: ResolutionStack,
        compute_once: bool = False,
    ):
        self._registry = registry
        self._singletons = singletons
        self._stack = stack
        self._compute_once = compute_once

    def get_bean(self, bean_type: TypeKey, *args: Any) -> Any:
        """Return an instance of ``bean_type``.

        Args:
            bean_type: The type to resolve.
            *args: Constructor arguments. When given, the provider registry is
                bypassed and the constructor whose annotated parameter types
                exactly match the arguments' types is called.

        Returns:
            The cached singleton if there is one, otherwise a new instance with
            its injection points populated.

        Raises:
            CircularDependencyError: If ``bean_type`` is already being resolved
                on the calling thread.
            NullResolutionError: If no instance could be produced.
        """
        cached = self._singletons.get(bean_type)
        if cached is not None:
            return cached

        if self._compute_once and is_singleton(bean_type):
            with self._singletons.lock_for(bean_type):
                cached = self._singletons.get(bean_type)
                if cached is not None:
                    return cached
                result = self._create_bean(bean_type, args)
        else:
            result = self._create_bean(bean_type, args)

        if result is None:
            raise NullResolutionError(bean_type)
        return result

    def _create_bean(self, bean_type: TypeKey, args: tuple[Any, ...]) -> Optional[Any]:
        with self._stack.frame(bean_type):
            try:
                instance = self._create_instance(bean_type, args)
                if instance is None:
                    return None

                self._inject_fields(bean_type, instance)
                if is_singleton(bean_type):
                    self._singletons.put(bean_type, instance)
            except CircularDependencyError:
                raise
            except ConstructorError as e:
                logger.warning("%s", e)
                return None
            except Exception:
                logger.exception("Failed to create bean %s", type_name(bean_type))
                return None

        logger.debug("Resolved bean %s", type_name(bean_type))
        return instance

    def _create_instance(self, bean_type: TypeKey, args: tuple[Any, ...]) -> Optional[Any]:
        if args:
            return _construct_with_arguments(bean_type, args)

        provider = self._registry.lookup(bean_type)
        if provider is not None:
            return provider()

        return _construct_without_arguments(bean_type)

    def _inject_fields(self, bean_type: TypeKey, instance: Any):
        for point in injection_points(bean_type):
            _assign(bean_type, instance, point, self.get_bean(point.declared_type))


def _construct_without_arguments(bean_type: TypeKey) -> Any:
    if not inspect.isclass(bean_type):
        raise MissingConstructorError(bean_type)
    if inspect.isabstract(bean_type):
        raise InaccessibleConstructorError(bean_type)

    try:
        inspect.signature(bean_type).bind()
    except TypeError:
        raise MissingConstructorError(bean_type) from None
    except ValueError:
        # No introspectable signature; let the call itself decide.
        pass

    return bean_type()


def _construct_with_arguments(bean_type: TypeKey, args: tuple[Any, ...]) -> Any:
    if not inspect.isclass(bean_type):
        raise MissingConstructorError(bean_type)

    for candidate in constructor_candidates(bean_type):
        if candidate.accepts_exactly(args):
            return candidate.build(*args)

    raise MissingConstructorError(bean_type)


def _assign(bean_type: TypeKey, instance: Any, point: InjectionPoint, value: Any):
    if point.final:
        raise FinalFieldError(bean_type, point.name)

    try:
        setattr(instance, point.name, value)
    except dataclasses.FrozenInstanceError:
        object.__setattr__(instance, point.name, value)
