"""
Exceptions raised by the radial modelling package.

All errors derive from ValueError so callers that already guard model input
with ``except ValueError`` keep working.
"""


class RadialModelError(Exception):
    """Base class for all radial model errors."""


class ValidationError(RadialModelError, ValueError):
    """A model could not be constructed from the arguments given."""


class DomainError(RadialModelError, ValueError):
    """A radius or depth lies outside the model."""

    def __init__(self, value: float, message: str):
        self.value = value
        super().__init__(f"{message} (got {value})")


class UndefinedPropertyError(RadialModelError, ValueError):
    """A property, table or reference frequency is not defined for the model."""


class StructuralAssumptionError(RadialModelError, ValueError):
    """The model does not have the solid/liquid core layering assumed."""
