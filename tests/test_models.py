import pytest
from pydantic import ValidationError

from service_codec.description.base import Description, Location, Operation, Parameter
from service_codec.errors import FilterError, UnknownOperationError
from service_codec.filters import with_filters


class TestParameter:
    def test_create_minimal_parameter(self):
        p = Parameter(name="id", location="uri")
        assert p.name == "id"
        assert p.location == Location.URI
        assert p.required is False
        assert p.filters == []
        assert p.properties == {}

    def test_wire_name_defaults_to_name(self):
        assert Parameter(name="id").wire_name == "id"
        assert Parameter(name="trace", sentAs="X-Trace").wire_name == "X-Trace"

    def test_property_names_filled_from_keys(self):
        p = Parameter.model_validate(
            {"name": "user", "type": "object", "properties": {"street": {"type": "string"}}}
        )
        assert p.get_property("street").name == "street"

    def test_filters_applied_in_declared_order(self):
        p = Parameter(name="tag", filters=["trim", "uppercase"])
        assert p.filter("  abc ") == "ABC"

    def test_filter_call_with_value_placeholder(self):
        registry = with_filters(round=round)
        p = Parameter.model_validate(
            {"name": "price", "filters": [{"method": "round", "args": ["@value", 1]}]},
            context={"filters": registry},
        )
        assert p.filter(2.345) == 2.3

    def test_custom_filter_unknown_to_default_registry(self):
        with pytest.raises(ValidationError):
            Parameter.model_validate({"name": "price", "filters": ["round"]})

    def test_unknown_filter_fails_validation(self):
        with pytest.raises(ValidationError, match="Unknown filter 'shout'"):
            Parameter(name="x", filters=["shout"])

    def test_failing_filter_raises_filter_error(self):
        p = Parameter(name="count", location="query", filters=["integer"])
        with pytest.raises(FilterError) as exc_info:
            p.filter("many")
        assert exc_info.value.parameter == "count"
        assert exc_info.value.location == "query"

    def test_any_custom_filter_failure_becomes_filter_error(self):
        p = Parameter.model_validate(
            {"name": "n", "location": "query", "filters": ["ratio"]},
            context={"filters": with_filters(ratio=lambda v: 100 / v)},
        )
        with pytest.raises(FilterError) as exc_info:
            p.filter(0)
        assert exc_info.value.parameter == "n"
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    def test_coerce_scalar_types(self):
        assert Parameter(name="n", type="integer").coerce("42") == 42
        assert Parameter(name="n", type="number").coerce("1.5") == 1.5
        assert Parameter(name="b", type="boolean").coerce("false") is False
        assert Parameter(name="s", type="string").coerce("42") == "42"
        assert Parameter(name="n", type="integer").coerce("abc") == "abc"

    def test_parameter_is_frozen(self):
        p = Parameter(name="id")
        with pytest.raises(ValidationError):
            p.name = "other"


class TestOperation:
    def test_parameter_names_filled_from_keys(self):
        op = Operation.model_validate(
            {"httpMethod": "POST", "parameters": {"name": {"location": "json"}}}
        )
        assert op.http_method == "POST"
        assert op.has_param("name")
        assert op.get_param("name").name == "name"
        assert op.get_param("missing") is None

    def test_defaults(self):
        op = Operation(name="Ping")
        assert op.http_method == "GET"
        assert op.uri is None
        assert op.additional_parameters is None


class TestDescription:
    def test_operation_lookup(self):
        desc = Description.model_validate(
            {"baseUrl": "https://api.example.com", "operations": {"Ping": {}}}
        )
        assert desc.base_url == "https://api.example.com"
        assert desc.has_operation("Ping")
        assert desc.get_operation("Ping").name == "Ping"

    def test_unknown_operation(self):
        desc = Description()
        with pytest.raises(UnknownOperationError) as exc_info:
            desc.get_operation("doesNotExist")
        assert exc_info.value.operation == "doesNotExist"
        assert "doesNotExist" in str(exc_info.value)

    def test_models_named_from_keys(self):
        desc = Description.model_validate({"models": {"User": {"type": "object"}}})
        assert desc.has_model("User")
        assert desc.get_model("User").name == "User"
        assert desc.get_model("Nope") is None
