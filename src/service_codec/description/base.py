"""Service description models.

A Description holds Operations, an Operation holds Parameters, and a
Parameter may nest further Parameters (object properties, array items).
Everything is frozen once validated.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationInfo, model_validator

from service_codec.errors import FilterError, UnknownOperationError
from service_codec.filters import DEFAULT_FILTERS, bind_filter


class Location(str, Enum):
    """Where on an HTTP message a parameter value lives."""

    URI = "uri"
    BODY = "body"
    QUERY = "query"
    HEADER = "header"
    JSON = "json"
    XML = "xml"
    POST_FIELD = "postField"
    POST_FILE = "postFile"
    STATUS_CODE = "statusCode"
    REASON_PHRASE = "reasonPhrase"


def _fill_names(mapping: Any) -> Any:
    """Copy each mapping key into its value's ``name`` unless one is given."""
    if not isinstance(mapping, Mapping):
        return mapping
    named = {}
    for key, value in mapping.items():
        if isinstance(value, Mapping) and "name" not in value:
            value = {**value, "name": key}
        named[key] = value
    return named


class FilterCall(BaseModel):
    """A filter invocation with explicit arguments, e.g. ``round(@value, 2)``."""

    model_config = ConfigDict(frozen=True)

    method: str
    args: list = []


class Parameter(BaseModel):
    """One named value of an operation or model."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    type: str | None = None
    location: str | None = None
    sent_as: str | None = Field(default=None, alias="sentAs")
    description: str = ""
    format: str | None = None
    required: bool = False
    default: Any = None
    static: bool = False
    filters: list[str | FilterCall] = []
    properties: dict[str, "Parameter"] = {}
    items: "Parameter | None" = None
    additional_properties: Union["Parameter", bool, None] = Field(
        default=None, alias="additionalProperties"
    )
    data: dict[str, Any] = {}

    _filter_funcs: list = PrivateAttr(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _name_properties(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "properties" in data:
            data = {**data, "properties": _fill_names(data["properties"])}
        return data

    @model_validator(mode="after")
    def _resolve_filters(self, info: ValidationInfo) -> "Parameter":
        registry = DEFAULT_FILTERS
        if info.context and "filters" in info.context:
            registry = info.context["filters"]
        funcs = []
        for spec in self.filters:
            method, args = (spec, None) if isinstance(spec, str) else (spec.method, spec.args)
            try:
                funcs.append(bind_filter(method, args, registry))
            except KeyError:
                raise ValueError(f"Unknown filter '{method}' on parameter '{self.name}'") from None
        self._filter_funcs = funcs
        return self

    @property
    def wire_name(self) -> str:
        return self.sent_as or self.name

    def get_property(self, name: str) -> "Parameter | None":
        return self.properties.get(name)

    def filter(self, value: Any) -> Any:
        """Run the value through this parameter's filters in declared order."""
        for func in self._filter_funcs:
            try:
                value = func(value)
            except FilterError as exc:
                raise exc.annotate(parameter=self.name, location=self.location)
            except Exception as exc:
                raise FilterError(
                    f"Filter failed on {type(value).__name__} value: {exc}",
                    parameter=self.name,
                    location=self.location,
                ) from exc
        return value

    def coerce(self, value: Any) -> Any:
        """Convert a textual wire value to this parameter's scalar type.

        Values that do not parse are returned unchanged.
        """
        if not isinstance(value, str):
            return value
        try:
            if self.type == "integer":
                return int(value)
            if self.type in ("number", "numeric"):
                number = float(value)
                return int(number) if number.is_integer() and "." not in value else number
        except ValueError:
            return value
        if self.type == "boolean":
            lowered = value.strip().lower()
            if lowered in ("true", "1"):
                return True
            if lowered in ("false", "0"):
                return False
        return value


class Operation(BaseModel):
    """Schema for one named command."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    http_method: str = Field(default="GET", alias="httpMethod")
    uri: str | None = None
    summary: str = ""
    parameters: dict[str, Parameter] = {}
    additional_parameters: Parameter | None = Field(default=None, alias="additionalParameters")
    response_model: str | None = Field(default=None, alias="responseModel")
    data: dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def _name_parameters(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "parameters" in data:
            data = {**data, "parameters": _fill_names(data["parameters"])}
        return data

    def has_param(self, name: str) -> bool:
        return name in self.parameters

    def get_param(self, name: str) -> Parameter | None:
        return self.parameters.get(name)


class Description(BaseModel):
    """The schema root: base endpoint, operations and shared models."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    api_version: str | None = Field(default=None, alias="apiVersion")
    base_url: str | None = Field(default=None, alias="baseUrl")
    description: str = ""
    operations: dict[str, Operation] = {}
    models: dict[str, Parameter] = {}

    @model_validator(mode="before")
    @classmethod
    def _name_entries(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            data = dict(data)
            for key in ("operations", "models"):
                if key in data:
                    data[key] = _fill_names(data[key])
        return data

    def has_operation(self, name: str) -> bool:
        return name in self.operations

    def get_operation(self, name: str) -> Operation:
        try:
            return self.operations[name]
        except KeyError:
            raise UnknownOperationError(name) from None

    def has_model(self, name: str) -> bool:
        return name in self.models

    def get_model(self, name: str) -> Parameter | None:
        return self.models.get(name)
