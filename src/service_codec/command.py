"""Command: the operation name plus the values a caller supplied for it."""

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

RESERVED_PREFIX = "@"


class Command(Mapping):
    """Read-only bag of parameter values for one operation call.

    Keys starting with ``@`` are reserved for transport options and are
    never serialized as additional parameters.
    """

    def __init__(self, name: str, params: Mapping[str, Any] | None = None):
        self.name = name
        self._params = MappingProxyType(dict(params or {}))

    def has_param(self, name: str) -> bool:
        """Whether ``name`` was explicitly supplied (even as None)."""
        return name in self._params

    def to_dict(self) -> dict[str, Any]:
        return dict(self._params)

    def __getitem__(self, name: str) -> Any:
        return self._params[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        return f"Command({self.name!r}, {dict(self._params)!r})"


def is_reserved(key: str) -> bool:
    return key.startswith(RESERVED_PREFIX)
