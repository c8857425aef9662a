"""Tests for remoterest.remotes — the in-memory Registry."""

import pytest

from remoterest import CancellationToken, ConfigurationError, ParamSpec, Registry, RemoteError
from remoterest.errors import RequestCanceled
from remoterest.remotes import SharedMethod, get_type_string, resolve_arguments


def _props(**overrides):
    props = {"params": {}, "query": {}, "headers": {}}
    props.update(overrides)
    return props


class TestTypeString:
    @pytest.mark.parametrize(
        ("type_", "expected"),
        [
            ([str], "array"),
            (dict, "object"),
            (int, "number"),
            (bool, "boolean"),
            ("Number", "number"),
            ("any", "any"),
        ],
    )
    def test_names(self, type_, expected) -> None:
        assert get_type_string(type_) == expected


class TestParamSpecCoerce:
    def test_bare_name(self) -> None:
        assert ParamSpec.coerce("id") == ParamSpec("id")

    def test_remoting_mapping(self) -> None:
        spec = ParamSpec.coerce({"arg": "data", "type": "object", "http": {"source": "body"}})
        assert spec == ParamSpec("data", "object", source="body")

    def test_missing_name(self) -> None:
        with pytest.raises(ConfigurationError):
            ParamSpec.coerce({"type": "string"})

    def test_wrong_type(self) -> None:
        with pytest.raises(ConfigurationError):
            ParamSpec.coerce(42)


class TestSharedClassRegistration:
    def test_bare_and_called_decorators(self) -> None:
        registry = Registry()
        widgets = registry.shared_class("Widget")

        @widgets.static
        def count():
            """Count widgets."""
            return 0

        @widgets.prototype(name="rename")
        def rename_widget(widget):
            return widget

        static = widgets.find("count")
        assert static is not None
        assert static.description == "Count widgets."
        assert widgets.find("rename", is_static=False).string_name == "Widget.prototype.rename"
        assert widgets.find("rename") is None

    def test_duplicate_method(self) -> None:
        widgets = Registry().shared_class("Widget")

        @widgets.static
        def count():
            return 0

        with pytest.raises(ConfigurationError):
            widgets.static(count)

    def test_duplicate_class(self) -> None:
        registry = Registry()
        registry.shared_class("Widget")
        with pytest.raises(ConfigurationError):
            registry.shared_class("Widget")

    def test_second_constructor(self) -> None:
        widgets = Registry().shared_class("Widget")
        widgets.constructor(lambda: None)
        with pytest.raises(ConfigurationError):
            widgets.constructor(lambda: None)

    def test_ctor_string_name(self) -> None:
        widgets = Registry().shared_class("Widget")
        widgets.constructor(lambda: None)
        assert widgets.ctor.string_name == "Widget.sharedCtor"
        assert widgets.methods() == []


class TestResolveArguments:
    def test_sources(self) -> None:
        accepts = [
            ParamSpec("id", source="path"),
            ParamSpec("filter", source="query"),
            ParamSpec("X-Token", source="header"),
            ParamSpec("data", source="body"),
        ]
        props = _props(
            params={"id": "7"},
            query={"filter": "new"},
            headers={"x-token": "abc"},
        )
        assert resolve_arguments(accepts, props, {"a": 1}) == {
            "id": "7",
            "filter": "new",
            "X-Token": "abc",
            "data": {"a": 1},
        }

    def test_req_source_is_whole_props(self) -> None:
        props = _props(method="GET")
        assert resolve_arguments([ParamSpec("req", source="req")], props, {}) == {"req": props}

    def test_default_lookup_order(self) -> None:
        accepts = [ParamSpec("id")]
        both = _props(params={"id": "path"}, query={"id": "query"})
        assert resolve_arguments(accepts, both, {"id": "body"}) == {"id": "path"}
        query_only = _props(query={"id": "query"})
        assert resolve_arguments(accepts, query_only, {"id": "body"}) == {"id": "query"}
        assert resolve_arguments(accepts, _props(), {"id": "body"}) == {"id": "body"}

    def test_missing_optional_is_omitted(self) -> None:
        assert resolve_arguments([ParamSpec("limit")], _props(), {}) == {}

    def test_missing_required(self) -> None:
        with pytest.raises(RemoteError) as exc_info:
            resolve_arguments([ParamSpec("id", required=True)], _props(), {})
        err = exc_info.value
        assert err.status == 400
        assert err.name == "ValidationError"
        assert err.arg == "id"

    def test_null_counts_as_missing(self) -> None:
        with pytest.raises(RemoteError):
            resolve_arguments([ParamSpec("id", required=True)], _props(), {"id": None})

    def test_number_coercion(self) -> None:
        accepts = [ParamSpec("a", "number"), ParamSpec("b", int), ParamSpec("c", "number")]
        props = _props(query={"a": "3", "b": "2.5", "c": 4})
        assert resolve_arguments(accepts, props, {}) == {"a": 3, "b": 2.5, "c": 4}

    def test_bad_number(self) -> None:
        with pytest.raises(RemoteError, match="must be a number"):
            resolve_arguments([ParamSpec("a", "number")], _props(query={"a": "x"}), {})

    def test_boolean_coercion(self) -> None:
        accepts = [ParamSpec("on", "boolean"), ParamSpec("off", bool)]
        props = _props(query={"on": "true", "off": "0"})
        assert resolve_arguments(accepts, props, {}) == {"on": True, "off": False}

    def test_bad_boolean(self) -> None:
        with pytest.raises(RemoteError, match="must be a boolean"):
            resolve_arguments([ParamSpec("on", "boolean")], _props(query={"on": "maybe"}), {})

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigurationError):
            resolve_arguments([ParamSpec("x", source="cookie")], _props(), {})


class TestInvoke:
    async def test_static(self) -> None:
        registry = Registry()
        math = registry.shared_class("Math")

        @math.static(accepts=[ParamSpec("a", "number"), ParamSpec("b", "number")])
        async def add(a, b):
            return a + b

        result = await registry.invoke(
            math.find("add"),
            props=_props(query={"a": "2", "b": "3"}),
            payload={},
            token=CancellationToken(),
        )
        assert result == 5

    async def test_prototype_gets_ctor_instance(self) -> None:
        registry = Registry()
        widgets = registry.shared_class("Widget")

        @widgets.constructor(accepts=[ParamSpec("id", "number", source="path")])
        def load(id):
            return {"id": id}

        @widgets.prototype(accepts=[ParamSpec("name")])
        def rename(widget, name):
            return {**widget, "name": name}

        result = await registry.invoke(
            widgets.find("rename", is_static=False),
            props=_props(params={"id": "4"}),
            payload={"name": "gear"},
            token=CancellationToken(),
        )
        assert result == {"id": 4, "name": "gear"}

    async def test_prototype_without_ctor_gets_none(self) -> None:
        registry = Registry()
        things = registry.shared_class("Thing")

        @things.prototype
        def describe(thing):
            return {"instance": thing}

        result = await registry.invoke(
            things.find("describe", is_static=False),
            props=_props(),
            payload={},
            token=CancellationToken(),
        )
        assert result == {"instance": None}

    async def test_token_injected_by_annotation(self) -> None:
        registry = Registry()
        jobs = registry.shared_class("Job")
        token = CancellationToken()

        @jobs.static
        def check(token: CancellationToken):
            return token

        result = await registry.invoke(
            jobs.find("check"), props=_props(), payload={}, token=token
        )
        assert result is token

    async def test_cancelled_ctor_stops_prototype_call(self) -> None:
        registry = Registry()
        widgets = registry.shared_class("Widget")
        token = CancellationToken()
        calls: list[str] = []

        @widgets.constructor
        def load():
            token.cancel("client disconnected")
            return {}

        @widgets.prototype
        def save(widget):
            calls.append("save")

        with pytest.raises(RequestCanceled):
            await registry.invoke(
                widgets.find("save", is_static=False), props=_props(), payload={}, token=token
            )
        assert calls == []

    def test_scope_is_the_shared_class(self) -> None:
        registry = Registry()
        widgets = registry.shared_class("Widget")
        method = SharedMethod("ping", lambda: None, "Widget")
        assert registry.get_scope(None, method) is widgets
