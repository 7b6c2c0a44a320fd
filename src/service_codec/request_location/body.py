"""Raw request body location."""

import logging

import requests

from service_codec.command import Command
from service_codec.description.base import Parameter
from service_codec.request_location.base import AbstractLocation

logger = logging.getLogger(__name__)


class BodyLocation(AbstractLocation):
    """Uses the filtered value as the whole request body.

    Only one body parameter makes sense per operation; if several are
    supplied the last one visited wins.
    """

    def __init__(self, location_name: str = "body"):
        super().__init__(location_name)

    def visit(self, command: Command, request: requests.Request, param: Parameter) -> requests.Request:
        if request.data:
            logger.debug("Body parameter '%s' replaces an existing request body", param.name)
        request.data = param.filter(self._value(command, param))
        return request
