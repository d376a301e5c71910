"""
DecoExt - Parameter Binding Metadata

Storage for argument bindings keyed by (owner class, method name, namespace).

A binding says "fill positional parameter N from the payload, optionally
reading the field K". Bindings are recorded when the owning class is
created and read on every dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type


class NamespaceKey:
    """
    Identity token for one parameter namespace.

    Two keys created with the same name are still different keys.
    """

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"NamespaceKey({self.name!r})"


@dataclass(frozen=True)
class Binding:
    """Positional parameter index plus an optional field to extract."""

    parameter_index: int
    extraction_key: Optional[str] = None


_SlotKey = Tuple[Type, str, NamespaceKey]


class MetadataStore:
    """
    Bindings per (owner, method name, namespace key).

    Adding a binding for an index that already has one replaces it, so
    harvesting the same method twice is harmless.
    """

    def __init__(self) -> None:
        self._bindings: Dict[_SlotKey, Dict[int, Binding]] = {}

    def add(self, owner: Type, method_name: str, key: NamespaceKey, binding: Binding) -> None:
        if binding.parameter_index < 0:
            raise ValueError(f"Parameter index must be non-negative, got {binding.parameter_index}")
        slot = self._bindings.setdefault((owner, method_name, key), {})
        slot[binding.parameter_index] = binding

    def get(self, owner: Type, method_name: str, key: NamespaceKey) -> List[Binding]:
        """Bindings ordered by parameter index; empty if none were recorded."""
        slot = self._bindings.get((owner, method_name, key))
        if not slot:
            return []
        return [slot[index] for index in sorted(slot)]

    def has_bindings(self, owner: Type, method_name: str, key: NamespaceKey) -> bool:
        return bool(self._bindings.get((owner, method_name, key)))

    def clear(self) -> None:
        self._bindings.clear()

    def __len__(self) -> int:
        return sum(len(slot) for slot in self._bindings.values())
