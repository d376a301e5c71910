"""
Tests for dispatch/parameters.py - Parameter Mapping.

Covers:
- Annotated marker harvesting
- Explicit bind()
- Single-namespace and composite argument building
- Property: sparse argument arrays
"""
from dataclasses import dataclass
from typing import Annotated

import pytest
from hypothesis import given, settings, strategies as st

from dispatch.metadata import Binding, MetadataStore, NamespaceKey
from dispatch.parameters import (
    ParameterAnnotation,
    ParameterNamespace,
    build_arguments,
    build_composite_arguments,
    collect_bindings,
    extract,
)


@dataclass
class Alarm:
    name: str
    scheduled_time: float


@pytest.fixture
def store():
    return MetadataStore()


@pytest.fixture
def alarms(store):
    return ParameterNamespace("alarm_info", store)


# =============================================================================
# ParameterNamespace
# =============================================================================

class TestParameterNamespace:
    """Tests for ParameterNamespace."""

    def test_annotate_returns_marker(self, alarms):
        marker = alarms.annotate("name")

        assert isinstance(marker, ParameterAnnotation)
        assert marker.key is alarms.key
        assert marker.extraction_key == "name"

    def test_namespace_is_callable(self, alarms):
        assert alarms("name") == alarms.annotate("name")
        assert alarms().extraction_key is None

    def test_bind(self, store, alarms):
        class Owner:
            pass

        alarms.bind(Owner, "poll", 1, "name")

        assert store.get(Owner, "poll", alarms.key) == [Binding(1, "name")]


# =============================================================================
# collect_bindings
# =============================================================================

class TestCollectBindings:
    """Tests for harvesting Annotated markers."""

    def test_self_is_skipped(self, store, alarms):
        class Owner:
            def poll(self, alarm: Annotated[Alarm, alarms.annotate()]):
                pass

        recorded = collect_bindings(store, Owner, "poll", Owner.poll)

        assert recorded == 1
        assert store.get(Owner, "poll", alarms.key) == [Binding(0, None)]

    def test_sparse_and_keyed(self, store, alarms):
        class Owner:
            def poll(
                self,
                unbound: int,
                name: Annotated[str, alarms.annotate("name")],
            ):
                pass

        collect_bindings(store, Owner, "poll", Owner.poll)

        assert store.get(Owner, "poll", alarms.key) == [Binding(1, "name")]

    def test_several_namespaces_on_one_parameter(self, store, alarms):
        other = ParameterNamespace("other", store)

        class Owner:
            def poll(self, value: Annotated[str, alarms.annotate("name"), other.annotate()]):
                pass

        collect_bindings(store, Owner, "poll", Owner.poll)

        assert store.get(Owner, "poll", alarms.key) == [Binding(0, "name")]
        assert store.get(Owner, "poll", other.key) == [Binding(0, None)]

    def test_plain_annotations_ignored(self, store, alarms):
        class Owner:
            def poll(self, alarm: Alarm, note: Annotated[str, "unrelated"]):
                pass

        assert collect_bindings(store, Owner, "poll", Owner.poll) == 0
        assert store.get(Owner, "poll", alarms.key) == []


# =============================================================================
# Argument Builders
# =============================================================================

class TestExtract:
    """Tests for extract()."""

    def test_none_key_returns_source(self):
        payload = {"a": 1}
        assert extract(payload, None) is payload

    def test_mapping(self):
        assert extract({"a": 1}, "a") == 1
        assert extract({"a": 1}, "b") is None

    def test_attribute(self):
        alarm = Alarm("poll", 1.0)
        assert extract(alarm, "name") == "poll"
        assert extract(alarm, "missing") is None

    def test_none_source(self):
        assert extract(None, "a") is None


class TestBuildArguments:
    """Tests for build_arguments()."""

    class Owner:
        pass

    def test_no_bindings_passes_payload(self, store, alarms):
        builder = build_arguments(store, alarms.key)

        assert builder({"x": 1}, self.Owner, "poll") == [{"x": 1}]

    def test_keyed_binding(self, store, alarms):
        alarms.bind(self.Owner, "poll", 0, "foo")
        builder = build_arguments(store, alarms.key)

        assert builder({"foo": 1, "bar": 2}, self.Owner, "poll") == [1]

    def test_sparse_positions_are_none(self, store, alarms):
        alarms.bind(self.Owner, "poll", 2, "name")
        builder = build_arguments(store, alarms.key)

        assert builder(Alarm("poll", 3.0), self.Owner, "poll") == [None, None, "poll"]

    def test_other_namespace_ignored(self, store, alarms):
        other = ParameterNamespace("alarm_info", store)
        other.bind(self.Owner, "poll", 0, "name")
        builder = build_arguments(store, alarms.key)

        payload = Alarm("poll", 3.0)
        assert builder(payload, self.Owner, "poll") == [payload]


class TestBuildCompositeArguments:
    """Tests for build_composite_arguments()."""

    class Owner:
        pass

    @pytest.fixture
    def namespaces(self, store):
        return ParameterNamespace("data", store), ParameterNamespace("sender", store)

    @pytest.fixture
    def builder(self, store, namespaces):
        data, sender = namespaces
        return build_composite_arguments(
            store,
            {
                data.key: lambda payload: payload["data"],
                sender.key: lambda payload: payload["sender"],
            },
        )

    def test_no_bindings_passes_payload(self, builder):
        payload = {"data": 1, "sender": 2}
        assert builder(payload, self.Owner, "handle") == [payload]

    def test_sources_merged(self, builder, namespaces):
        data, sender = namespaces
        data.bind(self.Owner, "handle", 0, "key")
        sender.bind(self.Owner, "handle", 2)

        payload = {"data": {"key": "theme"}, "sender": {"id": "tab-1"}}

        assert builder(payload, self.Owner, "handle") == ["theme", None, {"id": "tab-1"}]

    def test_none_source(self, builder, namespaces):
        data, _ = namespaces
        data.bind(self.Owner, "handle", 0, "key")

        assert builder({"data": None, "sender": None}, self.Owner, "handle") == [None]


# =============================================================================
# Property-Based Tests
# =============================================================================

FIELDS = ["a", "b", "c"]


class TestArgumentProperties:
    """Property-based tests for argument building."""

    @given(
        bindings=st.dictionaries(
            st.integers(min_value=0, max_value=8),
            st.one_of(st.none(), st.sampled_from(FIELDS)),
            min_size=1,
        ),
        payload=st.fixed_dictionaries({name: st.integers() for name in FIELDS}),
    )
    @settings(max_examples=200)
    def test_sparse_array(self, bindings, payload):
        """Bound positions are filled from the payload, the rest are None."""
        store = MetadataStore()
        key = NamespaceKey("prop")

        class Owner:
            pass

        for index, field in bindings.items():
            store.add(Owner, "handle", key, Binding(index, field))

        args = build_arguments(store, key)(payload, Owner, "handle")

        assert len(args) == max(bindings) + 1
        for index, value in enumerate(args):
            if index not in bindings:
                assert value is None
            elif bindings[index] is None:
                assert value is payload
            else:
                assert value == payload[bindings[index]]

    @given(payload=st.dictionaries(st.text(), st.integers()))
    def test_unbound_payload_is_sole_argument(self, payload):
        """With no bindings the payload is passed through untouched."""
        store = MetadataStore()

        class Owner:
            pass

        args = build_arguments(store, NamespaceKey("prop"))(payload, Owner, "handle")

        assert len(args) == 1
        assert args[0] is payload
