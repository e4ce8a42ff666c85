"""Beanbag inversion-of-control container.

Beanbag turns a type into a fully constructed, dependency-injected instance.
Classes declare what they need with ``Inject[...]`` field annotations;
configuration classes contribute factories with ``@bean_provider`` methods;
``@singleton`` classes are built once and reused.

Key Features:
    - Field injection driven by standard type hints
    - Type-keyed provider methods on configuration objects
    - Lazily created, thread-safe singleton cache
    - Per-thread circular dependency detection with the full chain reported
    - Explicit constructor arguments matched by exact type

Basic Usage:
    >>> from beanbag.container import Container
    >>> from beanbag.markers import Inject, bean_provider, singleton
    >>>
    >>> @singleton
    ... class Database:
    ...     pass
    >>>
    >>> class Repository:
    ...     db: Inject[Database]
    >>>
    >>> container = Container()
    >>> repository = container.get_bean(Repository)

The container consists of several modules:
    - container: Public entry points and the default container
    - markers: Decorators and annotations read by the container
    - registry: Provider registration from configuration objects
    - resolver: Construction, field injection and singleton caching
    - resolution_stack: Per-thread cycle detection
    - singletons: Singleton cache
    - introspection: Discovery of providers, injection points and constructors
    - domain: Core domain models
    - errors: Container exceptions
"""
