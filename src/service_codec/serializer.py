"""Serializes commands into HTTP requests using request locations."""

import logging
from collections.abc import Mapping
from typing import Any

import requests

from service_codec.command import Command
from service_codec.description.base import Description, Location, Operation, Parameter
from service_codec.errors import ServiceCodecError, UnregisteredLocationError
from service_codec.request_location.base import AbstractLocation, scalar_to_str
from service_codec.request_location.body import BodyLocation
from service_codec.request_location.form import PostFieldLocation, PostFileLocation
from service_codec.request_location.header import HeaderLocation
from service_codec.request_location.json_location import JsonLocation
from service_codec.request_location.query import QueryLocation
from service_codec.request_location.xml_location import XmlLocation
from service_codec.uri import combine_uris, expand_template

logger = logging.getLogger(__name__)


def default_request_locations() -> dict[str, AbstractLocation]:
    return {
        Location.BODY.value: BodyLocation(Location.BODY.value),
        Location.QUERY.value: QueryLocation(Location.QUERY.value),
        Location.HEADER.value: HeaderLocation(Location.HEADER.value),
        Location.JSON.value: JsonLocation(Location.JSON.value),
        Location.XML.value: XmlLocation(Location.XML.value),
        Location.POST_FIELD.value: PostFieldLocation(Location.POST_FIELD.value),
        Location.POST_FILE.value: PostFileLocation(Location.POST_FILE.value),
    }


class Serializer:
    """Builds a ``requests.Request`` for a command from the service description.

    ``locations`` adds custom locations or replaces built-in ones by name.
    """

    def __init__(self, description: Description, locations: Mapping[str, AbstractLocation] | None = None):
        self.description = description
        self.locations = {**default_request_locations(), **(locations or {})}

    def __call__(self, command: Command) -> requests.Request:
        return self.serialize(command)

    def serialize(self, command: Command) -> requests.Request:
        operation = self.description.get_operation(command.name)
        request = self._create_request(command, operation)
        return self._prepare_request(command, operation, request)

    def _prepare_request(self, command: Command, operation: Operation, request: requests.Request) -> requests.Request:
        """Visit every supplied parameter, then finalize each location touched."""
        visited: dict[str, AbstractLocation] = {}

        for name, param in operation.parameters.items():
            location = param.location
            if location is None or location == Location.URI or not self._is_supplied(command, param):
                continue
            handler = self._location(location, operation, param)
            visited.setdefault(location, handler)
            try:
                request = handler.visit(command, request, param)
            except ServiceCodecError as exc:
                raise exc.annotate(operation=operation.name, parameter=name, location=location)

        # after() must run for the additional parameters location even if nothing was visited there
        additional = operation.additional_parameters
        if additional is not None and additional.location is not None:
            visited.setdefault(additional.location, self._location(additional.location, operation, additional))

        logger.debug("Serializing %s: finalizing locations %s", operation.name, list(visited))
        for location, handler in visited.items():
            try:
                request = handler.after(command, request, operation)
            except ServiceCodecError as exc:
                raise exc.annotate(operation=operation.name, location=location)

        return request

    def _create_request(self, command: Command, operation: Operation) -> requests.Request:
        # Without a template the base URL is used as-is
        if operation.uri is None:
            return requests.Request(operation.http_method, self.description.base_url)

        variables: dict[str, Any] = {}
        for name, param in operation.parameters.items():
            if param.location != Location.URI or not self._is_supplied(command, param):
                continue
            value = param.default if param.static or not command.has_param(name) else command[name]
            try:
                value = param.filter(value)
            except ServiceCodecError as exc:
                raise exc.annotate(operation=operation.name)
            if not isinstance(value, (list, tuple, dict)):
                value = scalar_to_str(value)
            variables[name] = value

        expanded = expand_template(operation.uri, variables)
        return requests.Request(operation.http_method, combine_uris(self.description.base_url, expanded))

    def _location(self, location: str, operation: Operation, param: Parameter) -> AbstractLocation:
        try:
            return self.locations[location]
        except KeyError:
            raise UnregisteredLocationError(
                f"No location registered for '{param.name or 'additionalParameters'}'",
                operation=operation.name,
                parameter=param.name or None,
                location=location,
            ) from None

    @staticmethod
    def _is_supplied(command: Command, param: Parameter) -> bool:
        return command.has_param(param.name) or param.default is not None
