"""Shared behaviour for locations that read parameter values out of a response."""

from typing import Any

import requests

from service_codec.command import Command
from service_codec.description.base import Parameter


class ResultAccumulator(dict):
    """Values extracted from one response.

    ``scratch`` is per-call space where locations cache work shared between
    visits, such as a parsed body.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.scratch: dict[str, Any] = {}


class AbstractLocation:
    """Base response location. ``before`` and ``after`` default to no-ops."""

    def __init__(self, location_name: str):
        self.location_name = location_name

    def before(
        self, command: Command, response: requests.Response, model: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        return result

    def visit(
        self, command: Command, response: requests.Response, param: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        return result

    def after(
        self, command: Command, response: requests.Response, model: Parameter, result: ResultAccumulator
    ) -> ResultAccumulator:
        return result

    def _additional(self, model: Parameter) -> Parameter | None:
        """The model's additional properties schema, if it reads from this location."""
        additional = model.additional_properties
        if isinstance(additional, Parameter) and additional.location == self.location_name:
            return additional
        return None
