"""
DecoExt - Event Dispatch Factory

One EventDispatcher per event namespace. It hands out:
- the namespace's parameter annotation
- listener_wrapper(): the runtime handler for one (owner, method) pair
- listener(): the method decorator used by event categories

Runtime handler contract, for each call with a payload:
1. The owner must be a registered service; otherwise
   ServiceNotRegisteredError is raised by the call itself, before any
   coroutine is created
2. The optional filter runs first; a falsy result ends the dispatch with
   None and nothing is constructed
3. The singleton is resolved and its init chain awaited
4. The payload is mapped to positional arguments; arguments beyond what
   the method accepts are dropped, so a method may ignore the payload
5. The method's result (awaited if needed) is returned

Usage:
    alarms = container.create_dispatcher("alarm_info")

    class Poller:
        @alarms.listener(handlers.append)
        async def poll(self, name: Annotated[str, alarms.parameter_annotation("name")]):
            ...
"""

from __future__ import annotations

import inspect
import logging
import sys
from types import FrameType
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Coroutine,
    Dict,
    List,
    Optional,
    Tuple,
    Type,
    Union,
)

from core.async_utils import maybe_await
from core.errors import InvalidListenerError, ServiceNotRegisteredError
from dispatch.parameters import (
    ArgumentBuilder,
    ParameterAnnotation,
    ParameterNamespace,
    build_arguments,
    collect_bindings,
)
from observability.tracing import dispatch_span

if TYPE_CHECKING:
    from di.container import Container

logger = logging.getLogger("decoext.dispatch.factory")

Filter = Callable[[Any], Union[bool, Awaitable[bool]]]
Register = Callable[["ListenerHandler"], None]


def _positional_capacity(method: Callable[..., Any]) -> Optional[int]:
    """Positional parameters after ``self``; None when ``*args`` is accepted."""
    parameters = list(inspect.signature(method).parameters.values())[1:]
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in parameters):
        return None
    return sum(
        1 for p in parameters
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    )


class ListenerHandler:
    """
    Runtime handler produced by EventDispatcher.listener_wrapper().

    Calling it returns a coroutine resolving to the method's result.
    """

    def __init__(
        self,
        dispatcher: "EventDispatcher",
        owner: Type,
        method: Callable[..., Any],
        method_name: str,
        filter: Optional[Filter] = None,
    ):
        self.dispatcher = dispatcher
        self.owner = owner
        self.method = method
        self.method_name = method_name
        self.filter = filter
        self._capacity = _positional_capacity(method)

    @property
    def qualified_name(self) -> str:
        return f"{self.owner.__qualname__}.{self.method_name}"

    def __call__(self, payload: Any = None) -> Coroutine[Any, Any, Any]:
        if not self.dispatcher.container.registry.is_registered(self.owner):
            raise ServiceNotRegisteredError(self.owner, self.method_name)
        return self._dispatch(payload)

    async def _dispatch(self, payload: Any) -> Any:
        dispatcher = self.dispatcher
        with dispatch_span(dispatcher.name, self.owner.__qualname__, self.method_name):
            if self.filter is not None and not await maybe_await(self.filter(payload)):
                logger.debug("Filter rejected event for %s", self.qualified_name)
                return None

            instance = dispatcher.container.resolve(self.owner)
            await instance.init()

            args = dispatcher.argument_builder(payload, self.owner, self.method_name)
            if self._capacity is not None:
                args = args[:self._capacity]
            return await maybe_await(self.method(instance, *args))

    def __repr__(self) -> str:
        return f"ListenerHandler({self.dispatcher.name}:{self.qualified_name})"


class ListenerMethod:
    """
    Descriptor left in the class body by a listener decorator.

    Registrations are collected while decorators are applied and flushed in
    __set_name__, once the owner class exists. Several event decorators may
    be stacked on one method; each keeps its own namespace.

    Attribute access behaves like the undecorated function.
    """

    def __init__(self, func: Callable[..., Any]):
        if isinstance(func, (staticmethod, classmethod)) or not inspect.isfunction(func):
            raise InvalidListenerError(
                f"Listener decorators apply to plain methods, got {func!r}"
            )
        self.func = func
        self.owner: Optional[Type] = None
        self.name: Optional[str] = None
        self.handlers: List[ListenerHandler] = []
        self.scope: Dict[str, Any] = {}
        self._pending: List[Tuple["EventDispatcher", Register, Optional[Filter]]] = []
        self.__doc__ = func.__doc__
        self.__wrapped__ = func

    def add(self, dispatcher: "EventDispatcher", register: Register, filter: Optional[Filter]) -> None:
        self._pending.append((dispatcher, register, filter))

    def capture_scope(self, frame: Optional[FrameType]) -> None:
        """
        Remember the locals of the scope enclosing the class body.

        ``frame`` is the class body frame. Names defined in an enclosing
        function are needed to evaluate string annotations.
        """
        enclosing = frame.f_back if frame is not None else None
        if enclosing is None or enclosing.f_locals is enclosing.f_globals:
            return
        for name, value in enclosing.f_locals.items():
            self.scope.setdefault(name, value)

    def __set_name__(self, owner: Type, name: str) -> None:
        self.owner = owner
        self.name = name

        harvested: List[int] = []
        for dispatcher, register, filter in self._pending:
            store = dispatcher.container.metadata
            if id(store) not in harvested:
                collect_bindings(store, owner, name, self.func, self.scope)
                harvested.append(id(store))

            handler = dispatcher.listener_wrapper(owner, self.func, name, filter)
            register(handler)
            self.handlers.append(handler)
            logger.debug("Registered %r", handler)
        self._pending.clear()

    def __get__(self, obj: Any, objtype: Optional[Type] = None) -> Any:
        if obj is None:
            return self.func
        return self.func.__get__(obj, objtype)


class EventDispatcher:
    """Decorator and handler factory for one event namespace."""

    def __init__(
        self,
        container: "Container",
        name: str,
        argument_builder: Optional[ArgumentBuilder] = None,
        namespace: Optional[ParameterNamespace] = None,
    ):
        self.container = container
        self.name = name
        self.namespace = namespace or container.create_namespace(name)
        self.argument_builder = argument_builder or build_arguments(
            container.metadata, self.namespace.key
        )

    def parameter_annotation(self, extraction_key: Optional[str] = None) -> ParameterAnnotation:
        """This namespace's marker for ``Annotated[...]`` parameters."""
        return self.namespace.annotate(extraction_key)

    def listener_wrapper(
        self,
        owner: Type,
        method: Callable[..., Any],
        method_name: str,
        filter: Optional[Filter] = None,
    ) -> ListenerHandler:
        return ListenerHandler(self, owner, method, method_name, filter)

    def listener(
        self,
        register: Register,
        filter: Optional[Filter] = None,
    ) -> Callable[[Any], ListenerMethod]:
        """
        Method decorator registering the method as a listener.

        Args:
            register: Called with the runtime handler when the owner class
                is created
            filter: Optional predicate on the payload, sync or async
        """

        def decorator(func: Any) -> ListenerMethod:
            listener = func if isinstance(func, ListenerMethod) else ListenerMethod(func)
            listener.add(self, register, filter)
            # Applied from the class body
            listener.capture_scope(sys._getframe(1))
            return listener

        return decorator

    def __repr__(self) -> str:
        return f"EventDispatcher({self.name!r})"
