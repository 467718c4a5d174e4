"""Error types reported by the JSON Schema validator.

Validation never raises these for a non-conforming instance; they are
collected and returned as a list. Only the loader path raises (a
``LoaderError`` travels out of the fetch loop and is then handed back to the
caller as a single-element list).
"""

from typing import Any, Dict, List, Optional


class ValidationError(Exception):
    """A single located violation.

    Attributes:
        resolution_scope: URI of the schema node whose keyword failed
        instance_context: JSON Pointer shaped path (``#/a/0``) to the tested value
        constraint_name: The keyword that failed, e.g. ``maximum``
        constraint_value: The keyword's value in the schema
        tested_value: The value that was tested, where meaningful
        description: Human-readable explanation
        sub_schema_validation_errors: Per-branch errors for composite keywords
    """

    def __init__(self, resolution_scope: Optional[str] = None,
                 instance_context: Optional[str] = None,
                 constraint_name: Optional[str] = None,
                 constraint_value: Any = None,
                 tested_value: Any = None,
                 description: Optional[str] = None,
                 sub_schema_validation_errors: Optional[Dict[str, List['ValidationError']]] = None):
        self.resolution_scope = resolution_scope
        self.instance_context = instance_context
        self.constraint_name = constraint_name
        self.constraint_value = constraint_value
        self.tested_value = tested_value
        self.description = description
        self.sub_schema_validation_errors = sub_schema_validation_errors
        super().__init__(self._message())

    def _message(self) -> str:
        if self.description:
            message = self.description
        elif self.constraint_name:
            message = f"failed '{self.constraint_name}' constraint {self.constraint_value!r}"
            if self.tested_value is not None:
                message += f" (tested value: {self.tested_value!r})"
        else:
            message = 'validation failed'
        if self.instance_context:
            message += f" at {self.instance_context}"
        return message

    def to_dict(self) -> Dict[str, Any]:
        """Returns the serializable shape of this error."""
        result = {
            'resolutionScope': self.resolution_scope,
            'instanceContext': self.instance_context,
            'constraintName': self.constraint_name,
            'constraintValue': self.constraint_value,
            'testedValue': self.tested_value,
            'description': self.description,
        }
        if self.sub_schema_validation_errors is not None:
            result['subSchemaValidationErrors'] = {
                key: [error.to_dict() for error in errors]
                for key, errors in self.sub_schema_validation_errors.items()
            }
        return result

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.resolution_scope, self.instance_context,
                     self.constraint_name, self.description))

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(constraint_name={self.constraint_name!r}, "
                f"instance_context={self.instance_context!r}, description={self.description!r})")


class TypeValidationError(ValidationError):
    """The instance has the wrong type, or is not one of the ``enum`` values."""


class NumericValidationError(ValidationError):
    """A numeric keyword (multipleOf, maximum, minimum) failed."""


class StringValidationError(ValidationError):
    """A string keyword (maxLength, minLength, pattern) failed."""


class ArrayValidationError(ValidationError):
    """An array keyword (items, additionalItems, maxItems, minItems, uniqueItems) failed."""


class ObjectValidationError(ValidationError):
    """An object keyword (required, properties, dependencies, ...) failed."""


class FormatValidationError(ValidationError):
    """A named format checker rejected the value."""


class CompositeValidationError(ValidationError):
    """allOf, anyOf, oneOf or not failed as a whole."""


class SchemaReferenceError(ValidationError):
    """A ``$ref`` could not be resolved against the registry."""


class LoaderError(ValidationError):
    """Missing schemas could not be loaded, or the loader was bypassed."""


class SchemaLoaderError(LoaderError):
    """The loader failed to fetch or parse one schema.

    Attributes:
        url: The URI that was requested
        cause: The underlying exception, if any
    """

    def __init__(self, url: str, description: str, cause: Optional[BaseException] = None):
        self.url = url
        self.cause = cause
        super().__init__(description=description, tested_value=url)


class RecursionBudgetError(LoaderError):
    """Fetching referenced schemas would need more rounds than allowed.

    Attributes:
        missing: The URIs still missing when the budget ran out
    """

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        description = ('would exceed max recursion depth fetching these referenced schemas '
                       '(set the max_recursion property if you need to go deeper): '
                       + ', '.join(self.missing))
        super().__init__(description=description, tested_value=self.missing)
