"""
DecoExt - Event Dispatch

Parameter binding metadata, payload-to-argument mapping and the dispatcher
that turns decorated service methods into runtime event handlers.
"""

from dispatch.metadata import Binding, MetadataStore, NamespaceKey
from dispatch.parameters import (
    ArgumentBuilder,
    ParameterAnnotation,
    ParameterNamespace,
    build_arguments,
    build_composite_arguments,
    collect_bindings,
    extract,
)
from dispatch.factory import (
    EventDispatcher,
    ListenerHandler,
    ListenerMethod,
)

__all__ = [
    "Binding",
    "MetadataStore",
    "NamespaceKey",
    "ArgumentBuilder",
    "ParameterAnnotation",
    "ParameterNamespace",
    "build_arguments",
    "build_composite_arguments",
    "collect_bindings",
    "extract",
    "EventDispatcher",
    "ListenerHandler",
    "ListenerMethod",
]
