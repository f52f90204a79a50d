"""Tests for httpayload.transcode.tags and httpayload.transcode.plan."""

import enum
import threading
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, Sequence

import pytest

from httpayload.core.errors import PlanError
from httpayload.transcode.plan import (
    FieldCategory,
    PlanCache,
    build_plan,
    get_plan,
    get_plan_cache,
    register_passthrough,
)
from httpayload.transcode.tags import (
    Bits,
    Int8,
    UInt32,
    collect_attributes,
    lookup_tag,
    tagged,
)


class Color(enum.Enum):
    RED = "red"
    BLUE = "blue"


class Role:
    def __init__(self, name: str):
        self.name = name

    @classmethod
    def from_string(cls, text: str) -> "Role":
        return cls(text)


class RoleList(list):
    """A sequence type that parses itself."""

    @classmethod
    def from_string(cls, text: str) -> "RoleList":
        return cls(text.split("|"))


class Handle:
    pass


class Connection:
    pass


@dataclass
class Params:
    page: UInt32 = tagged(0, query="page", form="page")
    done: bool = tagged(False, query="done")
    ratio: float = tagged(0.0, query="ratio")
    name: str = tagged("", query="name", header="X-Name")
    roles: list[str] = tagged(default_factory=list, query="roles")
    numbers: tuple[Int8, ...] = tagged((), query="numbers")
    hidden: str = tagged("", query="-")
    untagged: str = ""
    token: str = tagged("", cookie="token", cookie_secure="true", cookie_samesite="lax")


@dataclass
class Exotic:
    color: Color = tagged(Color.RED, query="color")
    role: Optional[Role] = tagged(None, query="role")
    role_list: RoleList = tagged(default_factory=RoleList, query="role-list")
    blob: BinaryIO | None = tagged(None, multipart="blob")
    anything: Any = tagged(None, multipart="anything")
    count: Sequence[int] = tagged(default_factory=list, query="count")


@dataclass
class Nested:
    grid: list[list[int]] = tagged(default_factory=list, query="grid")


@dataclass
class Mixed:
    pair: tuple[int, str] = tagged((0, ""), query="pair")


@dataclass
class BareList:
    values: list = tagged(default_factory=list, query="values")


@dataclass
class Unsupported:
    handle: Handle = tagged(None, query="handle")


@dataclass
class Ambiguous:
    value: int | str = tagged(0, query="value")


class TestTags:
    """Test tag helpers."""

    def test_tagged_turns_underscores_into_hyphens(self):
        f = tagged("", cookie="token", cookie_max_age="60")
        assert dict(f.metadata) == {"cookie": "token", "cookie-max-age": "60"}

    def test_lookup_tag(self):
        assert lookup_tag({"query": "page"}, "query") == "page"

    @pytest.mark.parametrize("metadata", [{}, {"query": ""}, {"query": "-"}])
    def test_lookup_tag_skipped(self, metadata):
        """Missing, empty and "-" tags all mean "not in this namespace"."""
        assert lookup_tag(metadata, "query") is None

    def test_collect_attributes(self):
        metadata = {"cookie": "token", "cookie-path": "/api", "cookie-secure": "true", "query": "t"}
        assert collect_attributes(metadata, "cookie") == {"path": "/api", "secure": "true"}

    def test_bits_bounds(self):
        assert (Bits(8).minimum, Bits(8).maximum) == (-128, 127)
        assert (Bits(16, signed=False).minimum, Bits(16, signed=False).maximum) == (0, 65535)


class TestBuildPlan:
    """Test plan construction."""

    def test_declaration_order_and_skips(self):
        """Only fields tagged for the namespace appear, in order."""
        plan = build_plan(Params, "query")
        assert [d.name for d in plan] == ["page", "done", "ratio", "name", "roles", "numbers"]
        assert plan.keys() == ["page", "done", "ratio", "name", "roles", "numbers"]

    def test_categories(self):
        plan = {d.name: d for d in build_plan(Params, "query")}
        assert plan["page"].category is FieldCategory.UNSIGNED
        assert plan["page"].bits == Bits(32, signed=False)
        assert plan["done"].category is FieldCategory.BOOLEAN
        assert plan["ratio"].category is FieldCategory.FLOAT
        assert plan["name"].category is FieldCategory.STRING

    def test_sequences(self):
        plan = {d.name: d for d in build_plan(Params, "query")}
        roles = plan["roles"]
        assert roles.category is FieldCategory.SEQUENCE
        assert roles.element is FieldCategory.STRING
        assert roles.container is list

        numbers = plan["numbers"]
        assert numbers.element is FieldCategory.INTEGER
        assert numbers.container is tuple
        assert numbers.bits == Bits(8)
        assert numbers.type_name == "tuple[int8]"

    def test_namespace_keys_differ(self):
        plan = build_plan(Params, "header")
        assert [(d.name, d.key) for d in plan] == [("name", "X-Name")]

    def test_attributes(self):
        (token,) = build_plan(Params, "cookie")
        assert dict(token.attributes) == {"secure": "true", "samesite": "lax"}

    def test_empty_namespace(self):
        assert len(build_plan(Params, "path")) == 0

    def test_custom_and_passthrough(self):
        plan = {d.name: d for d in build_plan(Exotic, "query")}
        assert plan["color"].category is FieldCategory.CUSTOM
        assert plan["color"].parser("blue") is Color.BLUE
        assert plan["role"].category is FieldCategory.CUSTOM
        assert plan["role"].target is Role
        assert plan["count"].category is FieldCategory.SEQUENCE
        assert plan["count"].container is list

        multipart = {d.name: d for d in build_plan(Exotic, "multipart")}
        assert multipart["blob"].category is FieldCategory.PASSTHROUGH
        assert multipart["anything"].category is FieldCategory.PASSTHROUGH

    def test_parse_capability_wins_over_sequence_shape(self):
        """A list subclass with from_string is CUSTOM, not SEQUENCE."""
        plan = {d.name: d for d in build_plan(Exotic, "query")}
        assert plan["role_list"].category is FieldCategory.CUSTOM

    def test_registered_passthrough(self):
        @dataclass
        class WithHandle:
            handle: Connection = tagged(None, multipart="handle")

        with pytest.raises(PlanError):
            build_plan(WithHandle, "multipart")

        register_passthrough(Connection)
        (handle,) = build_plan(WithHandle, "multipart")
        assert handle.category is FieldCategory.PASSTHROUGH

    def test_to_dict(self):
        data = build_plan(Params, "cookie").to_dict()
        assert data["record"] == "Params"
        assert data["namespace"] == "cookie"
        assert data["fields"][0]["key"] == "token"
        assert data["fields"][0]["category"] == "string"


class TestPlanErrors:
    """Structurally untranscodable records fail at build time."""

    def test_not_a_dataclass(self):
        with pytest.raises(PlanError, match="not a dataclass"):
            build_plan(dict, "query")

    def test_instance_is_not_a_record_type(self):
        with pytest.raises(PlanError):
            build_plan(Params(), "query")

    def test_nested_sequence(self):
        with pytest.raises(PlanError, match="nested sequences") as exc:
            build_plan(Nested, "query")
        assert exc.value.field == "grid"
        assert exc.value.context.record == "Nested"

    def test_heterogeneous_tuple(self):
        with pytest.raises(PlanError, match="homogeneous"):
            build_plan(Mixed, "query")

    def test_bare_list(self):
        with pytest.raises(PlanError, match="element type"):
            build_plan(BareList, "query")

    def test_unsupported_type(self):
        with pytest.raises(PlanError, match="not transcodable") as exc:
            build_plan(Unsupported, "query")
        assert exc.value.key == "handle"

    def test_union(self):
        with pytest.raises(PlanError, match="union"):
            build_plan(Ambiguous, "query")

    def test_untagged_unsupported_field_is_ignored(self):
        """Only fields tagged for the namespace are inspected."""
        assert len(build_plan(Unsupported, "header")) == 0


class TestPlanCache:
    """Test plan caching."""

    def test_get_plan_is_cached(self):
        first = get_plan(Params, "query")
        assert get_plan(Params, "query") is first
        assert (Params, "query") in get_plan_cache()

    def test_cache_per_namespace(self):
        assert get_plan(Params, "query") is not get_plan(Params, "header")

    def test_cache_disabled(self, monkeypatch):
        """HTTPAYLOAD_CACHE_PLANS=false builds a fresh plan every call."""
        from httpayload.core.settings import reset_settings

        monkeypatch.setenv("HTTPAYLOAD_CACHE_PLANS", "false")
        reset_settings()
        assert get_plan(Params, "query") is not get_plan(Params, "query")
        assert (Params, "query") not in get_plan_cache()

    def test_concurrent_first_use_builds_once(self, monkeypatch):
        """Concurrent misses on one key publish a single plan."""
        cache = PlanCache()
        results = []

        def worker():
            results.append(cache.get(Params, "query"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 1
        assert all(plan is results[0] for plan in results)

    def test_failed_build_is_not_cached(self):
        with pytest.raises(PlanError):
            get_plan(Nested, "query")
        assert (Nested, "query") not in get_plan_cache()
