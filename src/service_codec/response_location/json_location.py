"""JSON response body location."""

from collections.abc import Mapping
from typing import Any

import requests

from service_codec.command import Command
from service_codec.description.base import Parameter
from service_codec.errors import LocationHandlerError
from service_codec.response_location.base import AbstractLocation, ResultAccumulator


class JsonLocation(AbstractLocation):
    """Reads values out of a JSON object body, parsed once per response."""

    def __init__(self, location_name: str = "json"):
        super().__init__(location_name)

    def before(
        self, command: Command, response: requests.Response, model: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        self._document(response, result)
        return result

    def visit(
        self, command: Command, response: requests.Response, param: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        document = self._document(response, result)
        if isinstance(document, Mapping) and param.wire_name in document:
            result[param.name] = self._recurse(param, document[param.wire_name])
        return result

    def after(
        self, command: Command, response: requests.Response, model: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        additional = self._additional(model)
        if additional is None:
            return result
        document = self._document(response, result)
        if not isinstance(document, Mapping):
            return result
        claimed = {prop.wire_name for prop in model.properties.values()}
        for key, value in document.items():
            if key not in claimed and key not in result:
                result[key] = self._recurse(additional, value)
        return result

    def _document(self, response: requests.Response, result: ResultAccumulator) -> Any:
        if self.location_name not in result.scratch:
            if not response.content:
                document = {}
            else:
                try:
                    document = response.json()
                except ValueError as exc:
                    raise LocationHandlerError(
                        f"Response body is not valid JSON: {exc}", location=self.location_name
                    ) from exc
            result.scratch[self.location_name] = document
        return result.scratch[self.location_name]

    def _recurse(self, param: Parameter, value: Any) -> Any:
        if param.type == "object" and isinstance(value, Mapping):
            extracted = {}
            for name, prop in param.properties.items():
                if prop.wire_name in value:
                    extracted[name] = self._recurse(prop, value[prop.wire_name])
            if param.additional_properties is not False:
                claimed = {prop.wire_name for prop in param.properties.values()}
                for key, item in value.items():
                    if key in claimed:
                        continue
                    if isinstance(param.additional_properties, Parameter):
                        item = self._recurse(param.additional_properties, item)
                    extracted[key] = item
            value = extracted
        elif param.type == "array" and param.items is not None and isinstance(value, list):
            value = [self._recurse(param.items, item) for item in value]
        return param.filter(value)
