"""JSON body location."""

import json
from typing import Any

import requests

from service_codec.command import Command
from service_codec.description.base import Operation, Parameter
from service_codec.errors import LocationHandlerError
from service_codec.request_location.base import AbstractLocation, set_content_type


class JsonLocation(AbstractLocation):
    """Collects parameters into one JSON object body.

    Values accumulate in ``request.json`` during visits; ``after`` encodes
    the object into ``request.data`` and sets the content type.
    """

    def __init__(self, location_name: str = "json", content_type: str = "application/json"):
        super().__init__(location_name)
        self.content_type = content_type

    def visit(self, command: Command, request: requests.Request, param: Parameter) -> requests.Request:
        value = self._prepare_value(self._value(command, param), param)
        return self._place(request, param.wire_name, value)

    def _place(self, request: requests.Request, key: str, value: Any) -> requests.Request:
        if request.json is None:
            request.json = {}
        request.json[key] = value
        return request

    def after(self, command: Command, request: requests.Request, operation: Operation) -> requests.Request:
        request = super().after(command, request, operation)
        if request.json is None:
            return request

        try:
            request.data = json.dumps(request.json, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise LocationHandlerError(
                f"Cannot encode JSON body: {exc}",
                operation=operation.name,
                parameter=self._offending_key(request.json),
                location=self.location_name,
            ) from exc
        request.json = None
        set_content_type(request, self.content_type, replace=False)
        return request

    @staticmethod
    def _offending_key(document: dict) -> str | None:
        for key, value in document.items():
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                return key
        return None
