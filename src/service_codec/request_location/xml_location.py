"""XML body location."""

from collections.abc import Mapping
from typing import Any

import requests
import xmltodict

from service_codec.command import Command
from service_codec.description.base import Operation, Parameter
from service_codec.request_location.base import AbstractLocation, scalar_to_str, set_content_type

DEFAULT_ROOT = "Request"
ITEM_ELEMENT = "item"


def xml_item_name(items: Parameter | None) -> str:
    """Element name used for each entry of a wrapped array."""
    if items is None:
        return ITEM_ELEMENT
    return items.wire_name or ITEM_ELEMENT


def namespace_attributes(namespaces: Any) -> dict[str, str]:
    """``{"": uri, "ns": uri}`` (or a bare URI) -> xmlns attributes."""
    if isinstance(namespaces, str):
        return {"@xmlns": namespaces}
    return {
        f"@xmlns:{prefix}" if prefix else "@xmlns": uri
        for prefix, uri in (namespaces or {}).items()
    }


class PendingXml(dict):
    """Content of the root element, collected until ``after`` writes it."""


class XmlLocation(AbstractLocation):
    """Collects parameters into an XML document body.

    Parameter ``data`` hints: ``xmlAttribute`` writes an attribute instead of
    an element, ``xmlFlattened`` repeats array items without a wrapper and
    ``xmlNamespace`` adds an ``xmlns`` attribute to the element.
    """

    def __init__(self, location_name: str = "xml", content_type: str = "application/xml"):
        super().__init__(location_name)
        self.content_type = content_type

    def visit(self, command: Command, request: requests.Request, param: Parameter) -> requests.Request:
        value = self._prepare_value(self._value(command, param), param)
        self._add(self._document(request), param, param.wire_name, value)
        return request

    def _place(self, request: requests.Request, key: str, value: Any) -> requests.Request:
        self._add(self._document(request), None, key, value)
        return request

    def after(self, command: Command, request: requests.Request, operation: Operation) -> requests.Request:
        request = super().after(command, request, operation)
        if isinstance(request.data, PendingXml):
            content = dict(request.data)
        elif operation.data.get("xmlAllowEmpty"):
            content = {}
        else:
            return request

        root = operation.data.get("xmlRoot", {})
        content.update(namespace_attributes(root.get("namespaces")))
        document = {root.get("name", DEFAULT_ROOT): content or None}
        request.data = xmltodict.unparse(document).encode("utf-8")
        set_content_type(request, self.content_type, replace=False)
        return request

    def _document(self, request: requests.Request) -> PendingXml:
        if not isinstance(request.data, PendingXml):
            request.data = PendingXml()
        return request.data

    def _add(self, node: dict, param: Parameter | None, key: str, value: Any) -> None:
        if param is not None and param.data.get("xmlAttribute"):
            node[f"@{key}"] = scalar_to_str(value)
        else:
            node[key] = self._element(value, param)

    def _element(self, value: Any, param: Parameter | None) -> Any:
        namespace = param.data.get("xmlNamespace") if param is not None else None

        if isinstance(value, Mapping):
            element = {"@xmlns": namespace} if namespace else {}
            for key, item in value.items():
                self._add(element, self._property_by_wire_name(param, key), key, item)
            return element

        if isinstance(value, (list, tuple)):
            items = param.items if param is not None else None
            elements = [self._element(item, items) for item in value]
            if param is not None and param.data.get("xmlFlattened"):
                return elements
            return {xml_item_name(items): elements}

        if namespace:
            return {"@xmlns": namespace, "#text": scalar_to_str(value)}
        return scalar_to_str(value)

    @staticmethod
    def _property_by_wire_name(param: Parameter | None, key: str) -> Parameter | None:
        if param is None:
            return None
        for prop in param.properties.values():
            if prop.wire_name == key:
                return prop
        return None
