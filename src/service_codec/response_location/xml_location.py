"""XML response body location."""

from collections.abc import Mapping
from typing import Any
from xml.parsers.expat import ExpatError

import requests
import xmltodict

from service_codec.command import Command
from service_codec.description.base import Parameter
from service_codec.errors import LocationHandlerError
from service_codec.request_location.xml_location import xml_item_name
from service_codec.response_location.base import AbstractLocation, ResultAccumulator

_MISSING = object()


def _text(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("#text")
    return value


class XmlLocation(AbstractLocation):
    """Reads values out of an XML document body, parsed once per response.

    Honors the same ``data`` hints as the request side: ``xmlAttribute``
    and ``xmlFlattened``.
    """

    def __init__(self, location_name: str = "xml"):
        super().__init__(location_name)

    def before(
        self, command: Command, response: requests.Response, model: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        self._document(response, result)
        return result

    def visit(
        self, command: Command, response: requests.Response, param: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        value = self._read(self._document(response, result), param)
        if value is not _MISSING:
            result[param.name] = value
        return result

    def after(
        self, command: Command, response: requests.Response, model: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        additional = self._additional(model)
        if additional is None:
            return result
        claimed = {prop.wire_name for prop in model.properties.values()}
        for key, value in self._document(response, result).items():
            if key in claimed or key in result or key.startswith(("@", "#")):
                continue
            result[key] = self._process(additional, value)
        return result

    def _document(self, response: requests.Response, result: ResultAccumulator) -> dict:
        """The root element's content; the root element itself is dropped."""
        if self.location_name not in result.scratch:
            document: dict = {}
            if response.content:
                try:
                    parsed = xmltodict.parse(response.content)
                except ExpatError as exc:
                    raise LocationHandlerError(
                        f"Response body is not valid XML: {exc}", location=self.location_name
                    ) from exc
                root = next(iter(parsed.values()), None)
                if isinstance(root, Mapping):
                    document = dict(root)
            result.scratch[self.location_name] = document
        return result.scratch[self.location_name]

    def _read(self, node: Mapping, param: Parameter) -> Any:
        if param.data.get("xmlAttribute"):
            key = f"@{param.wire_name}"
            if key not in node:
                return _MISSING
            return param.filter(param.coerce(node[key]))
        if param.wire_name not in node:
            return _MISSING
        return self._process(param, node[param.wire_name])

    def _process(self, param: Parameter, value: Any) -> Any:
        if param.type == "array":
            items = param.items
            if param.data.get("xmlFlattened"):
                entries = value
            elif isinstance(value, Mapping):
                entries = value.get(xml_item_name(items))
            else:
                entries = None
            if entries is None:
                entries = []
            elif not isinstance(entries, list):
                entries = [entries]
            value = [self._process(items, entry) if items is not None else _text(entry) for entry in entries]
        elif param.type == "object":
            node = value if isinstance(value, Mapping) else {}
            extracted = {}
            claimed = set()
            for name, prop in param.properties.items():
                claimed.add(f"@{prop.wire_name}" if prop.data.get("xmlAttribute") else prop.wire_name)
                read = self._read(node, prop)
                if read is not _MISSING:
                    extracted[name] = read
            if param.additional_properties is not False:
                for key, item in node.items():
                    if key in claimed or key.startswith(("@", "#")):
                        continue
                    if isinstance(param.additional_properties, Parameter):
                        extracted[key] = self._process(param.additional_properties, item)
                    else:
                        extracted[key] = _text(item)
            value = extracted
        else:
            value = param.coerce(_text(value))
        return param.filter(value)
