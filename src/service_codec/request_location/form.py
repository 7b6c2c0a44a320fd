"""Form field and file upload locations.

Form fields accumulate in ``request.data`` as a ``PendingFields`` dict and
file parts in ``request.files``. Whichever location is finalized first
encodes the body; the encoded body keeps the fields and parts it was built
from, so a later location (or its additional parameters) can add to it and
encode again. Any pending file turns the body into multipart/form-data.
"""

import os
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

import requests
from urllib3.filepost import encode_multipart_formdata

from service_codec.command import Command
from service_codec.description.base import Operation, Parameter
from service_codec.errors import LocationHandlerError
from service_codec.request_location.base import AbstractLocation, flatten, set_content_type

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"


class PendingFields(dict):
    """Form fields collected for a request that has not been encoded yet."""


class UrlEncodedForm(str):
    """An encoded urlencoded body that remembers the fields it came from."""

    fields: dict
    parts: list


class MultipartForm(bytes):
    """An encoded multipart body that remembers the fields and file parts it came from."""

    fields: dict
    parts: list


def _form_pairs(fields: dict) -> list[tuple[str, str]]:
    pairs = []
    for key, value in fields.items():
        if isinstance(value, list):
            pairs.extend((key, v) for v in value)
        else:
            pairs.append((key, value))
    return pairs


def pending_fields(request: requests.Request) -> PendingFields:
    """Return the request's pending fields, reopening an already encoded form."""
    data = request.data
    if isinstance(data, (UrlEncodedForm, MultipartForm)):
        request.files = list(data.parts) + list(request.files)
        request.data = PendingFields(data.fields)
    elif not isinstance(data, PendingFields):
        request.data = PendingFields()
    return request.data


def encode_form(request: requests.Request) -> requests.Request:
    """Encode pending fields and files into the body and set the content type."""
    if not request.files and not isinstance(request.data, (PendingFields, UrlEncodedForm, MultipartForm)):
        return request
    fields = pending_fields(request)
    parts = list(request.files)
    if parts:
        body, content_type = encode_multipart_formdata(_form_pairs(fields) + parts)
        encoded = MultipartForm(body)
    else:
        encoded = UrlEncodedForm(urlencode(_form_pairs(fields)))
        content_type = FORM_CONTENT_TYPE
    encoded.fields = dict(fields)
    encoded.parts = parts
    request.data = encoded
    request.files = []
    return set_content_type(request, content_type)


class PostFieldLocation(AbstractLocation):
    """Adds URL-encoded (or multipart) form fields."""

    def __init__(self, location_name: str = "postField"):
        super().__init__(location_name)

    def visit(self, command: Command, request: requests.Request, param: Parameter) -> requests.Request:
        value = self._prepare_value(self._value(command, param), param)
        return self._place(request, param.wire_name, value)

    def _place(self, request: requests.Request, key: str, value: Any) -> requests.Request:
        fields = pending_fields(request)
        for name, flat in flatten(key, value):
            fields[name] = flat
        return request

    def after(self, command: Command, request: requests.Request, operation: Operation) -> requests.Request:
        request = super().after(command, request, operation)
        return encode_form(request)


class PostFileLocation(AbstractLocation):
    """Adds file parts and builds the multipart/form-data body."""

    def __init__(self, location_name: str = "postFile"):
        super().__init__(location_name)

    def visit(self, command: Command, request: requests.Request, param: Parameter) -> requests.Request:
        value = param.filter(self._value(command, param))
        return self._place(request, param.wire_name, value)

    def _place(self, request: requests.Request, key: str, value: Any) -> requests.Request:
        part = self._file_part(key, value)
        pending_fields(request)
        request.files.append((key, part))
        return request

    def after(self, command: Command, request: requests.Request, operation: Operation) -> requests.Request:
        request = super().after(command, request, operation)
        return encode_form(request)

    def _file_part(self, key: str, value: Any) -> tuple:
        """Turn a path, file object, tuple or raw contents into ``(filename, data[, mime])``."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, os.PathLike):
            path = Path(value)
            try:
                return path.name, path.read_bytes()
            except OSError as exc:
                raise LocationHandlerError(
                    f"Cannot read file {path}: {exc}", parameter=key, location=self.location_name
                ) from exc
        if hasattr(value, "read"):
            name = getattr(value, "name", None)
            return (os.path.basename(name) if isinstance(name, str) else key), value.read()
        if isinstance(value, (str, bytes)):
            return key, value
        raise LocationHandlerError(
            f"Unsupported file value of type {type(value).__name__}",
            parameter=key,
            location=self.location_name,
        )
