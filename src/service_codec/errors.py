"""Exception taxonomy for serialization and deserialization failures.

Every error can carry the operation, parameter and location it was raised
for, so the caller gets a single message pointing at the failing spot.
"""


class ServiceCodecError(Exception):
    """Base class for all codec errors."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        parameter: str | None = None,
        location: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.parameter = parameter
        self.location = location

    def annotate(
        self,
        operation: str | None = None,
        parameter: str | None = None,
        location: str | None = None,
    ) -> "ServiceCodecError":
        """Fill in missing context. Values already set are kept."""
        self.operation = self.operation or operation
        self.parameter = self.parameter or parameter
        self.location = self.location or location
        return self

    def __str__(self) -> str:
        context = [
            f"{key}={value}"
            for key, value in (
                ("operation", self.operation),
                ("parameter", self.parameter),
                ("location", self.location),
            )
            if value
        ]
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class UnknownOperationError(ServiceCodecError, KeyError):
    """The command names an operation the description does not define."""

    def __init__(self, name: str):
        super().__init__(f"No operation named '{name}'", operation=name)


class UnregisteredLocationError(ServiceCodecError):
    """A parameter targets a location with no registered handler."""


class FilterError(ServiceCodecError):
    """A filter rejected or could not process a value."""


class LocationHandlerError(ServiceCodecError):
    """A location could not embed or extract a value."""


class DescriptionError(ServiceCodecError):
    """A service description could not be assembled (bad $ref or extends)."""
