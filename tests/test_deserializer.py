import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from service_codec.command import Command
from service_codec.description.loader import build_description, load_description
from service_codec.deserializer import Deserializer
from service_codec.errors import LocationHandlerError, UnknownOperationError, UnregisteredLocationError
from service_codec.response_location.base import ResultAccumulator
from service_codec.serializer import Serializer

FIXTURES = Path(__file__).parent / "fixtures"


def _response(body: str | bytes = b"", status: int = 200, headers: dict | None = None):
    response = requests.Response()
    response.status_code = status
    response.reason = "OK"
    response.headers = CaseInsensitiveDict(headers or {})
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    response.encoding = "utf-8"
    return response


def _echo(request: requests.Request) -> requests.Response:
    """A canned response that mirrors the prepared request's headers and body."""
    prepared = request.prepare()
    return _response(prepared.body or b"", headers=dict(prepared.headers))


class TestDeserialize:
    def test_body_with_filter(self):
        desc = build_description(
            {"operations": {"Get": {"parameters": {"val": {"location": "body", "filters": ["uppercase"]}}}}}
        )
        result = Deserializer(desc).deserialize(Command("Get"), _response("foo"))
        assert result == {"val": "FOO"}

    def test_unknown_operation(self):
        with pytest.raises(UnknownOperationError):
            Deserializer(build_description({})).deserialize(Command("doesNotExist"), _response())

    def test_response_model(self):
        desc = load_description(FIXTURES / "users.yaml")
        response = _response(
            '{"id": 7, "name": "Ann", "address": {"street": "Main", "postal_code": "1000"}, "role": "admin"}',
            status=201,
            headers={"X-Request-Id": "req-1"},
        )
        result = Deserializer(desc)(Command("GetUser", {"id": 7}), response)
        assert result == {
            "id": 7,
            "name": "Ann",
            "address": {"street": "Main", "zip": "1000"},
            "requestId": "req-1",
            "status": 201,
            "role": "admin",
        }

    def test_returns_plain_dict(self):
        desc = build_description({"operations": {"Get": {"parameters": {"v": {"location": "body"}}}}})
        result = Deserializer(desc).deserialize(Command("Get"), _response("x"))
        assert type(result) is dict

    def test_implicit_model_skips_request_only_locations(self):
        desc = build_description(
            {
                "operations": {
                    "Get": {
                        "uri": "/things/{id}",
                        "parameters": {
                            "id": {"location": "uri"},
                            "q": {"location": "query"},
                            "etag": {"location": "header", "sentAs": "ETag"},
                        },
                    }
                }
            }
        )
        result = Deserializer(desc).deserialize(Command("Get"), _response(headers={"ETag": "abc"}))
        assert result == {"etag": "abc"}

    def test_explicit_model_with_unregistered_location(self):
        desc = build_description(
            {
                "operations": {"Get": {"responseModel": "Out"}},
                "models": {"Out": {"type": "object", "properties": {"x": {"location": "query"}}}},
            }
        )
        with pytest.raises(UnregisteredLocationError) as exc_info:
            Deserializer(desc).deserialize(Command("Get"), _response())
        assert exc_info.value.operation == "Get"
        assert exc_info.value.location == "query"

    def test_handler_errors_carry_operation(self):
        desc = build_description({"operations": {"Get": {"parameters": {"a": {"location": "json"}}}}})
        with pytest.raises(LocationHandlerError) as exc_info:
            Deserializer(desc).deserialize(Command("Get"), _response("not json"))
        assert exc_info.value.operation == "Get"

    def test_before_and_after_once_per_location(self):
        spy = MagicMock()
        spy.before.side_effect = lambda command, response, model, result: result
        spy.visit.side_effect = lambda command, response, param, result: result
        spy.after.side_effect = lambda command, response, model, result: result
        desc = build_description(
            {"operations": {"Get": {"parameters": {"a": {"location": "json"}, "b": {"location": "json"}}}}}
        )
        Deserializer(desc, locations={"json": spy}).deserialize(Command("Get"), _response("{}"))
        spy.before.assert_called_once()
        assert spy.visit.call_count == 2
        spy.after.assert_called_once()
        assert isinstance(spy.after.call_args[0][3], ResultAccumulator)

    def test_additional_properties_location_is_finalized(self):
        desc = build_description(
            {
                "operations": {"List": {"responseModel": "Anything"}},
                "models": {"Anything": {"type": "object", "additionalProperties": {"location": "json"}}},
            }
        )
        result = Deserializer(desc).deserialize(Command("List"), _response('{"a": 1, "b": [2]}'))
        assert result == {"a": 1, "b": [2]}


class TestRoundTrip:
    def test_json_and_header_values_survive(self):
        desc = build_description(
            {
                "baseUrl": "https://api.example.com",
                "operations": {
                    "Save": {
                        "httpMethod": "PUT",
                        "uri": "/profiles/{id}",
                        "parameters": {
                            "id": {"location": "uri"},
                            "version": {"location": "header", "sentAs": "X-Version", "type": "integer"},
                            "labels": {"location": "header", "sentAs": "X-Labels", "type": "array"},
                            "meta": {"location": "header", "sentAs": "X-Meta-", "type": "object"},
                            "name": {"location": "json", "sentAs": "display_name"},
                            "profile": {
                                "location": "json",
                                "type": "object",
                                "properties": {"zip": {"sentAs": "postal_code"}, "tags": {"type": "array"}},
                            },
                        },
                    }
                },
            }
        )
        values = {
            "version": 3,
            "labels": ["a", "b"],
            "meta": {"Color": "red", "Size": "L"},
            "name": "Ann",
            "profile": {"zip": "1000", "tags": ["x", "y"]},
        }
        command = Command("Save", {"id": 9, **values})
        request = Serializer(desc).serialize(command)

        result = Deserializer(desc).deserialize(command, _echo(request))
        assert result == values

    def test_xml_values_survive(self):
        desc = build_description(
            {
                "baseUrl": "https://api.example.com",
                "operations": {
                    "Save": {
                        "httpMethod": "POST",
                        "data": {"xmlRoot": {"name": "Profile"}},
                        "parameters": {
                            "id": {"location": "xml", "type": "integer", "data": {"xmlAttribute": True}},
                            "name": {"location": "xml"},
                            "active": {"location": "xml", "type": "boolean"},
                            "tags": {"location": "xml", "type": "array", "items": {"sentAs": "tag"}},
                            "scores": {
                                "location": "xml",
                                "type": "array",
                                "data": {"xmlFlattened": True},
                                "items": {"type": "integer"},
                            },
                        },
                    }
                }
            }
        )
        values = {"id": 4, "name": "Ann", "active": True, "tags": ["a", "b"], "scores": [1, 2, 3]}
        command = Command("Save", values)
        request = Serializer(desc).serialize(command)

        result = Deserializer(desc).deserialize(command, _echo(request))
        assert result == values

    def test_json_body_from_file_description(self):
        desc = load_description(FIXTURES / "users.yaml")
        command = Command("CreateUser", {"name": "Ann", "age": 30, "address": {"street": "Main", "zip": "1000"}})
        request = Serializer(desc).serialize(command)
        assert json.loads(request.data) == {
            "name": "Ann",
            "age": 30,
            "address": {"street": "Main", "postal_code": "1000"},
        }

        result = Deserializer(desc).deserialize(command, _echo(request))
        assert result["name"] == "Ann"
        assert result["address"] == {"street": "Main", "zip": "1000"}
        # the User model keeps unclaimed keys through its additional properties
        assert result["age"] == 30
