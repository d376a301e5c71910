"""
DecoExt - Parameter Mapping

Namespaces of parameter annotations and the argument builders that turn an
event payload into the positional arguments of a listener method.

A parameter is bound with a ``typing.Annotated`` marker:

    alarms = container.create_namespace("alarm_info")

    class Poller:
        def poll(self, name: Annotated[str, alarms.annotate("name")]) -> None:
            ...

or explicitly, when annotations are not an option:

    alarms.bind(Poller, "poll", 0, "name")

Markers are harvested into the MetadataStore by collect_bindings() when the
listener descriptor learns its owner class. Index 0 is the first parameter
after ``self``.
"""

from __future__ import annotations

import builtins
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Type,
    get_args,
    get_origin,
)

from core.errors import InvalidListenerError
from dispatch.metadata import Binding, MetadataStore, NamespaceKey

logger = logging.getLogger("decoext.dispatch.parameters")

ArgumentBuilder = Callable[[Any, Type, str], List[Any]]


@dataclass(frozen=True)
class ParameterAnnotation:
    """Marker placed inside ``Annotated[...]`` to bind a parameter."""

    key: NamespaceKey
    extraction_key: Optional[str] = None


class ParameterNamespace:
    """A named family of parameter bindings with its own identity key."""

    def __init__(self, name: str, store: MetadataStore):
        self.name = name
        self.key = NamespaceKey(name)
        self._store = store

    def annotate(self, extraction_key: Optional[str] = None) -> ParameterAnnotation:
        """
        Marker binding a parameter to the payload (or one of its fields).

        Args:
            extraction_key: Mapping key or attribute to read from the payload.
                None binds the whole payload.
        """
        return ParameterAnnotation(self.key, extraction_key)

    __call__ = annotate

    def bind(
        self,
        owner: Type,
        method_name: str,
        index: int,
        key: Optional[str] = None,
    ) -> None:
        """Record a binding without an annotation."""
        self._store.add(owner, method_name, self.key, Binding(index, key))

    def __repr__(self) -> str:
        return f"ParameterNamespace({self.name!r})"


class _Unresolved(type):
    """Stand-in for a name that only exists for type checkers."""

    def __getattr__(cls, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return _unresolved(f"{cls.__name__}.{name}")

    def __getitem__(cls, item: Any) -> Any:
        return cls

    def __or__(cls, other: Any) -> Any:
        return cls

    def __ror__(cls, other: Any) -> Any:
        return cls


def _unresolved(name: str) -> type:
    return _Unresolved(name, (), {"__module__": __name__})


class _LenientNamespace(dict):
    """Evaluation namespace that substitutes stand-ins for unknown names."""

    def __init__(self, namespace: Mapping, globalns: Mapping):
        super().__init__(namespace)
        self._globalns = globalns

    def __missing__(self, name: str) -> Any:
        if name in self._globalns:
            return self._globalns[name]
        if hasattr(builtins, name):
            return getattr(builtins, name)
        return _unresolved(name)


def _closure_namespace(func: Callable[..., Any]) -> Dict[str, Any]:
    namespace: Dict[str, Any] = {}
    for name, cell in zip(func.__code__.co_freevars, func.__closure__ or ()):
        try:
            namespace[name] = cell.cell_contents
        except ValueError:
            # Empty cell
            continue
    return namespace


def _evaluate(
    annotation: str,
    globalns: Dict[str, Any],
    localns: Dict[str, Any],
    where: str,
) -> Any:
    try:
        return eval(annotation, globalns, localns)
    except NameError:
        pass
    except Exception as e:
        raise InvalidListenerError(
            f"Cannot evaluate annotation {annotation!r} of {where}: {e}"
        ) from e

    # Names imported under TYPE_CHECKING; markers are still real objects
    try:
        value = eval(annotation, globalns, _LenientNamespace(localns, globalns))
    except Exception as e:
        raise InvalidListenerError(
            f"Cannot evaluate annotation {annotation!r} of {where}: {e}"
        ) from e
    logger.debug("Evaluated %r of %s with unresolved names", annotation, where)
    return value


def collect_bindings(
    store: MetadataStore,
    owner: Type,
    method_name: str,
    func: Callable[..., Any],
    localns: Optional[Mapping] = None,
) -> int:
    """
    Harvest every ParameterAnnotation in ``func``'s signature into ``store``.

    The first parameter (``self``) is skipped. Markers of all namespaces are
    recorded; each namespace only ever reads its own.

    String annotations (``from __future__ import annotations``) are evaluated
    one parameter at a time against the function's globals, ``localns`` (the
    scope the class was defined in), the function's closure and the owner's
    namespace, in increasing priority.

    Returns:
        Number of bindings recorded

    Raises:
        InvalidListenerError: If a string annotation cannot be evaluated
    """
    globalns = getattr(func, "__globals__", {})
    namespace: Dict[str, Any] = dict(localns or {})
    namespace.update(_closure_namespace(func))
    namespace.update(vars(owner))
    where = f"{owner.__qualname__}.{method_name}"

    parameters = list(inspect.signature(func).parameters.values())[1:]

    recorded = 0
    for index, parameter in enumerate(parameters):
        annotation = parameter.annotation
        if isinstance(annotation, str):
            annotation = _evaluate(annotation, globalns, namespace, where)
        if get_origin(annotation) is not Annotated:
            continue
        for marker in get_args(annotation)[1:]:
            if isinstance(marker, ParameterAnnotation):
                store.add(owner, method_name, marker.key, Binding(index, marker.extraction_key))
                recorded += 1

    if recorded:
        logger.debug(
            "Collected %d parameter bindings for %s.%s",
            recorded, owner.__qualname__, method_name,
        )
    return recorded


def extract(source: Any, key: Optional[str]) -> Any:
    """Read ``key`` from a mapping or object; the whole source when key is None."""
    if key is None:
        return source
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def build_arguments(store: MetadataStore, key: NamespaceKey) -> ArgumentBuilder:
    """
    Argument builder for a single namespace.

    With no bindings the payload is the only argument. Otherwise the result
    is a list long enough for the highest bound index, with unbound
    positions left as None.
    """

    def builder(payload: Any, owner: Type, method_name: str) -> List[Any]:
        bindings = store.get(owner, method_name, key)
        if not bindings:
            return [payload]

        args: List[Any] = [None] * (bindings[-1].parameter_index + 1)
        for binding in bindings:
            args[binding.parameter_index] = extract(payload, binding.extraction_key)
        return args

    return builder


def build_composite_arguments(
    store: MetadataStore,
    selectors: Mapping,
) -> ArgumentBuilder:
    """
    Argument builder fed by several namespaces.

    Args:
        store: Metadata store holding the bindings
        selectors: NamespaceKey -> callable picking that namespace's source
            out of the payload

    The payload is the only argument if none of the namespaces has bindings
    for the method.
    """
    selector_items = list(selectors.items())

    def builder(payload: Any, owner: Type, method_name: str) -> List[Any]:
        collected = [
            (selector, store.get(owner, method_name, key))
            for key, selector in selector_items
        ]
        indexes = [b.parameter_index for _, bindings in collected for b in bindings]
        if not indexes:
            return [payload]

        args: List[Any] = [None] * (max(indexes) + 1)
        for selector, bindings in collected:
            if not bindings:
                continue
            source = selector(payload)
            for binding in bindings:
                args[binding.parameter_index] = extract(source, binding.extraction_key)
        return args

    return builder
