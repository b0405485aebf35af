"""Dependency-injection container with constructor auto-wiring.

Services are registered under an id, either a class or a string, and
resolved on demand:

    container = Container()
    container.singleton(QueryBuilder, lambda engine: QueryBuilder(engine))
    container.alias("db.query", QueryBuilder)
    container.get("db.query")

Classes that are not registered are built by inspecting their constructor:
parameters annotated with a service type are resolved recursively, the rest
fall back to their defaults. Dotted strings such as ``"app.controllers.Home"``
are imported and treated like the class they name.
"""

from __future__ import annotations

import importlib
import inspect
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from sura.exceptions import ContainerError, NotFoundError

_EMPTY = inspect.Parameter.empty
_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
_BUILTIN_TYPES = frozenset(
    {object, int, float, complex, bool, str, bytes, bytearray, list, tuple, dict, set, frozenset}
)


@dataclass
class _Definition:
    concrete: Any
    shared: bool = False


@dataclass(frozen=True)
class _Pending:
    """A definition under construction, kept apart from the class it may build."""

    service_id: Any


def locate(name: str) -> type | None:
    """Import the class named by ``pkg.mod.Class`` or ``pkg.mod:Class``."""
    if ":" in name:
        module_name, _, attr_path = name.partition(":")
    else:
        module_name, _, attr_path = name.rpartition(".")
    if not module_name or not attr_path:
        return None
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError:
        return None
    for attr in attr_path.split("."):
        target = getattr(target, attr, None)
        if target is None:
            return None
    return target if isinstance(target, type) else None


def signature_hints(fn: Callable[..., Any]) -> tuple[inspect.Signature, dict[str, Any]]:
    """Return the signature of ``fn`` and its evaluated type hints."""
    sig = inspect.signature(fn)
    target = fn
    if not (inspect.isfunction(fn) or inspect.ismethod(fn)) and callable(fn):
        target = getattr(fn, "__call__", fn)
    try:
        hints = typing.get_type_hints(target)
    except (NameError, TypeError, AttributeError):
        # Unresolvable forward references: keep whatever is already a real type
        hints = {
            name: param.annotation
            for name, param in sig.parameters.items()
            if param.annotation is not _EMPTY and not isinstance(param.annotation, str)
        }
    return sig, hints


def service_type(annotation: Any) -> type | None:
    """Class a parameter annotation asks the container for, if any.

    ``Optional[X]`` and ``X | None`` unwrap to ``X``; builtins and generic
    aliases are not services.
    """
    if annotation is _EMPTY or annotation is None:
        return None
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(members) != 1:
            return None
        annotation = members[0]
        origin = typing.get_origin(annotation)
    if origin is not None or not isinstance(annotation, type):
        return None
    if annotation in _BUILTIN_TYPES:
        return None
    return annotation


def is_instantiable(cls: type) -> bool:
    return not inspect.isabstract(cls) and not getattr(cls, "_is_protocol", False)


def _describe(service_id: Any) -> str:
    if isinstance(service_id, type):
        return f"{service_id.__module__}.{service_id.__qualname__}"
    return str(service_id)


def _label(service_id: Any) -> str:
    if isinstance(service_id, _Pending):
        service_id = service_id.service_id
    return service_id.__qualname__ if isinstance(service_id, type) else str(service_id)


class Container:
    """Service container: definitions, shared instances and aliases."""

    _instance: Container | None = None

    def __init__(self) -> None:
        self.definitions: dict[Any, _Definition] = {}
        self.instances: dict[Any, Any] = {}
        self.aliases: dict[Any, Any] = {}
        # Ids currently under construction, for cycle detection
        self._resolving: list[Any] = []

        self.instance(Container, self)
        if type(self) is not Container:
            self.instance(type(self), self)
        self.alias("container", Container)

    @classmethod
    def get_instance(cls) -> Container:
        """Process-wide container, created on first use."""
        if Container._instance is None:
            Container._instance = cls()
        return Container._instance

    @classmethod
    def set_instance(cls, container: Container | None) -> None:
        Container._instance = container

    # Registration

    def bind(self, service_id: Any, concrete: Any = None, shared: bool = False) -> None:
        """Register ``concrete`` (class, factory, dotted path or object) under ``service_id``."""
        if concrete is None:
            concrete = service_id
        self.definitions[service_id] = _Definition(concrete, shared)
        self.instances.pop(service_id, None)

    def singleton(self, service_id: Any, concrete: Any = None) -> None:
        self.bind(service_id, concrete, shared=True)

    def instance(self, service_id: Any, obj: Any) -> None:
        self.instances[service_id] = obj

    def alias(self, alias: Any, service_id: Any) -> None:
        self.aliases[alias] = service_id

    def forget(self, service_id: Any) -> None:
        """Drop the cached instance so the next resolution rebuilds it."""
        self.instances.pop(self._resolve_alias(service_id), None)

    # Resolution

    def has(self, service_id: Any) -> bool:
        service_id = self._resolve_alias(service_id)
        if service_id in self.instances or service_id in self.definitions:
            return True
        cls = self._class_for(service_id)
        return cls is not None and is_instantiable(cls)

    def get(self, service_id: Any) -> Any:
        service_id = self._resolve_alias(service_id)

        if service_id in self.instances:
            return self.instances[service_id]

        definition = self.definitions.get(service_id)
        if definition is not None:
            return self._build_definition(service_id, definition)

        cls = self._class_for(service_id)
        if cls is not None:
            return self._build_class(cls)

        raise NotFoundError(f"Service '{_describe(service_id)}' not found.")

    def make(self, service_id: Any, params: Mapping[str, Any] | None = None) -> Any:
        """Resolve a service, overriding constructor/factory arguments by name.

        A cached shared instance is only returned when no overrides are given.
        """
        overrides = dict(params or {})
        service_id = self._resolve_alias(service_id)

        if service_id in self.instances and not overrides:
            return self.instances[service_id]

        definition = self.definitions.get(service_id)
        if definition is not None:
            return self._build_definition(service_id, definition, overrides)

        cls = self._class_for(service_id)
        if cls is not None:
            return self._build_class(cls, overrides)

        raise NotFoundError(f"Service '{_describe(service_id)}' not found for make().")

    def call(self, fn: Callable[..., Any], params: Mapping[str, Any] | None = None) -> Any:
        """Invoke ``fn`` with arguments auto-wired from the container."""
        args, kwargs = self._factory_arguments(fn, dict(params or {}))
        return fn(*args, **kwargs)

    def extend(self, service_id: Any, decorator: Callable[[Any, Container], Any]) -> None:
        """Wrap an existing service: ``decorator(previous, container)`` becomes the new one."""
        service_id = self._resolve_alias(service_id)

        if service_id in self.definitions:
            definition = self.definitions[service_id]
            concrete, shared = definition.concrete, definition.shared

            def previous() -> Any:
                return self._build(concrete, owner=service_id)

        elif service_id in self.instances:
            existing, shared = self.instances[service_id], True

            def previous() -> Any:
                return existing

        else:
            cls = self._class_for(service_id)
            if cls is None:
                raise NotFoundError(f"Cannot extend unknown service {_describe(service_id)}.")
            shared = False

            def previous() -> Any:
                return self._build_class(cls)

        def factory(container: Container) -> Any:
            return decorator(previous(), container)

        self.definitions[service_id] = _Definition(factory, shared)
        self.instances.pop(service_id, None)

    # Building

    def _build_definition(
        self, service_id: Any, definition: _Definition, overrides: Mapping[str, Any] | None = None
    ) -> Any:
        self._enter(_Pending(service_id))
        try:
            obj = self._build(definition.concrete, overrides, owner=service_id)
        finally:
            self._resolving.pop()
        if definition.shared:
            self.instances[service_id] = obj
        return obj

    def _enter(self, service_id: Any) -> None:
        if service_id in self._resolving:
            path = " -> ".join(_label(s) for s in [*self._resolving, service_id])
            raise ContainerError(f"Circular dependency detected: {path}")
        self._resolving.append(service_id)

    def _build(
        self, concrete: Any, overrides: Mapping[str, Any] | None = None, owner: Any = None
    ) -> Any:
        if isinstance(concrete, type):
            return self._build_class(concrete, overrides)

        if isinstance(concrete, str):
            cls = locate(concrete)
            if cls is not None:
                return self._build_class(cls, overrides)
            if concrete != owner and (
                concrete in self.definitions
                or concrete in self.instances
                or concrete in self.aliases
            ):
                return self.make(concrete, overrides) if overrides else self.get(concrete)
            raise ContainerError(f"Unable to build service '{concrete}'.")

        if callable(concrete):
            try:
                args, kwargs = self._factory_arguments(concrete, dict(overrides or {}))
                return concrete(*args, **kwargs)
            except Exception as e:
                raise ContainerError(f"Factory threw exception: {e}") from e

        return concrete

    def _build_class(self, cls: type, overrides: Mapping[str, Any] | None = None) -> Any:
        self._enter(cls)
        try:
            if not is_instantiable(cls):
                raise ContainerError(f"Class {cls.__qualname__} is not instantiable.")
            if cls.__init__ is object.__init__:
                return cls()
            args, kwargs = self._resolve_parameters(cls.__init__, dict(overrides or {}))
            return cls(*args, **kwargs)
        except Exception as e:
            raise ContainerError(f"Failed building {cls.__qualname__}: {e}") from e
        finally:
            self._resolving.pop()

    def _resolve_parameters(
        self, init: Callable[..., Any], overrides: dict[str, Any]
    ) -> tuple[list[Any], dict[str, Any]]:
        sig, hints = signature_hints(init)
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        # First parameter is ``self``
        for param in list(sig.parameters.values())[1:]:
            if param.kind in _VARIADIC:
                continue
            name = param.name

            if name in overrides:
                value = overrides[name]
            else:
                wanted = service_type(hints.get(name, _EMPTY))
                if wanted is not None and self.has(wanted):
                    value = self.get(wanted)
                elif param.default is not _EMPTY:
                    value = param.default
                elif wanted is not None:
                    raise ContainerError(
                        f"Unable to resolve parameter '{name}' (type {wanted.__qualname__})."
                    )
                else:
                    raise ContainerError(
                        f"Unable to resolve parameter '{name}': no service type and no default."
                    )

            if param.kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[name] = value
            else:
                args.append(value)
        return args, kwargs

    def _factory_arguments(
        self, factory: Callable[..., Any], overrides: dict[str, Any]
    ) -> tuple[list[Any], dict[str, Any]]:
        sig, hints = signature_hints(factory)
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for index, param in enumerate(sig.parameters.values()):
            if param.kind in _VARIADIC:
                continue
            name = param.name
            annotation = hints.get(name, _EMPTY)
            wanted = service_type(annotation)

            if wanted is not None and issubclass(wanted, Container):
                value: Any = self
            elif name in overrides:
                value = overrides[name]
            elif wanted is not None and self.has(wanted):
                value = self.get(wanted)
            elif name == "params":
                value = overrides
            elif param.default is not _EMPTY:
                value = param.default
            elif index == 0 and annotation is _EMPTY:
                # ``lambda c: ...`` style factories receive the container
                value = self
            else:
                value = None

            if param.kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[name] = value
            else:
                args.append(value)
        return args, kwargs

    def _class_for(self, service_id: Any) -> type | None:
        if isinstance(service_id, type):
            return service_id
        if isinstance(service_id, str):
            return locate(service_id)
        return None

    def _resolve_alias(self, service_id: Any) -> Any:
        seen = set()
        while service_id in self.aliases and service_id not in seen:
            seen.add(service_id)
            service_id = self.aliases[service_id]
        return service_id
