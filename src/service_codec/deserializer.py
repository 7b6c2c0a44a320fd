"""Deserializes HTTP responses into parameter values using response locations."""

import logging
from collections.abc import Mapping
from typing import Any

import requests

from service_codec.command import Command
from service_codec.description.base import Description, Location, Operation, Parameter
from service_codec.errors import ServiceCodecError, UnregisteredLocationError
from service_codec.response_location.base import AbstractLocation, ResultAccumulator
from service_codec.response_location.body import BodyLocation
from service_codec.response_location.header import HeaderLocation
from service_codec.response_location.json_location import JsonLocation
from service_codec.response_location.status import ReasonPhraseLocation, StatusCodeLocation
from service_codec.response_location.xml_location import XmlLocation

logger = logging.getLogger(__name__)


def default_response_locations() -> dict[str, AbstractLocation]:
    return {
        Location.BODY.value: BodyLocation(Location.BODY.value),
        Location.HEADER.value: HeaderLocation(Location.HEADER.value),
        Location.JSON.value: JsonLocation(Location.JSON.value),
        Location.XML.value: XmlLocation(Location.XML.value),
        Location.STATUS_CODE.value: StatusCodeLocation(Location.STATUS_CODE.value),
        Location.REASON_PHRASE.value: ReasonPhraseLocation(Location.REASON_PHRASE.value),
    }


class Deserializer:
    """Extracts a dict of values from a response for the command's operation.

    The operation's ``responseModel`` describes the response when set;
    otherwise the operation's own parameters are read back from every
    location that has a response handler.
    """

    def __init__(self, description: Description, locations: Mapping[str, AbstractLocation] | None = None):
        self.description = description
        self.locations = {**default_response_locations(), **(locations or {})}

    def __call__(self, command: Command, response: requests.Response) -> dict[str, Any]:
        return self.deserialize(command, response)

    def deserialize(self, command: Command, response: requests.Response) -> dict[str, Any]:
        operation = self.description.get_operation(command.name)
        model = self._response_model(operation)
        result = ResultAccumulator()
        visited: dict[str, AbstractLocation] = {}

        try:
            for name, param in model.properties.items():
                location = param.location
                if location is None:
                    continue
                handler = self._location(location, operation, param)
                if location not in visited:
                    visited[location] = handler
                    result = handler.before(command, response, model, result)
                try:
                    result = handler.visit(command, response, param, result)
                except ServiceCodecError as exc:
                    raise exc.annotate(parameter=name, location=location)

            additional = model.additional_properties
            if isinstance(additional, Parameter) and additional.location is not None:
                location = additional.location
                if location not in visited:
                    visited[location] = self._location(location, operation, additional)
                    result = visited[location].before(command, response, model, result)

            logger.debug("Deserializing %s: finalizing locations %s", operation.name, list(visited))
            for handler in visited.values():
                result = handler.after(command, response, model, result)
        except ServiceCodecError as exc:
            raise exc.annotate(operation=operation.name)

        return dict(result)

    def _response_model(self, operation: Operation) -> Parameter:
        if operation.response_model is not None:
            model = self.description.get_model(operation.response_model)
            if model is not None:
                return model
            logger.warning(
                "Operation %s names unknown response model %s; reading its parameters instead",
                operation.name,
                operation.response_model,
            )

        properties = {
            name: param for name, param in operation.parameters.items() if param.location in self.locations
        }
        additional = operation.additional_parameters
        if additional is not None and additional.location not in self.locations:
            additional = None
        return Parameter(name=operation.name, type="object", properties=properties, additional_properties=additional)

    def _location(self, location: str, operation: Operation, param: Parameter) -> AbstractLocation:
        try:
            return self.locations[location]
        except KeyError:
            raise UnregisteredLocationError(
                f"No response location registered for '{param.name or 'additionalProperties'}'",
                operation=operation.name,
                parameter=param.name or None,
                location=location,
            ) from None
