"""Validates JSON instances against JSON Schema documents.

``JsonSchemaValidator`` owns a schema registry and a format registry and can
be reused for many validations; schemas registered on it stay available to
later calls. Synchronous validation never performs I/O; an unresolvable
remote ``$ref`` is reported as an error. ``validate_async`` first fetches
missing remote schemas through the configured loader.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from jsonsvalidator.common import anonymous_schema_id
from jsonsvalidator.constants import DEFAULT_MAX_RECURSION, DRAFT_04_SCHEMA_URI
from jsonsvalidator.draft04 import Draft04Validator
from jsonsvalidator.errors import LoaderError, ValidationError
from jsonsvalidator.formats import FormatChecker, FormatRegistry
from jsonsvalidator.httploader import http_loader
from jsonsvalidator.resolver import Loader, load_missing_refs
from jsonsvalidator.schemaregistry import SchemaRegistry

logger = logging.getLogger(__name__)

RULE_SETS: Dict[str, Type[Draft04Validator]] = {
    DRAFT_04_SCHEMA_URI: Draft04Validator,
}


class JsonSchemaValidator:
    """Validates JSON instances against JSON Schema draft-04 schemas.

    Args:
        loader: Optional ``loader(uri) -> schema`` used by ``validate_async``
            to fetch referenced remote schemas; see ``JsonSchemaValidator.loaders``
        max_recursion: Maximum number of fetch rounds per ``validate_async`` call
    """

    loaders: Dict[str, Loader] = {
        'http': http_loader,
    }

    def __init__(self, loader: Optional[Loader] = None, max_recursion: int = DEFAULT_MAX_RECURSION) -> None:
        self.loader = loader if callable(loader) else None
        self.max_recursion = max_recursion
        self.schema_registry = SchemaRegistry()
        self.format_registry = FormatRegistry()
        self._rule_sets: Dict[str, Draft04Validator] = {}

    def register(self, schema: Any, schema_id: Optional[str] = None) -> List[str]:
        """Registers a schema so that other schemas can ``$ref`` it.

        Returns:
            Base URIs this schema references that are not registered yet
        """
        return self.schema_registry.register(schema, schema_id)

    def is_registered(self, schema_id: str) -> bool:
        return self.schema_registry.is_registered(schema_id)

    def get_missing_schemas(self) -> List[str]:
        """Returns base URIs referenced by registered schemas but not registered themselves."""
        return self.schema_registry.get_missing_schemas()

    def add_format(self, name: str, checker: FormatChecker) -> None:
        """Registers or overrides the checker for a ``format`` name."""
        self.format_registry.add_format(name, checker)

    def validate(self, instance: Any, schema: Dict[str, Any]) -> List[ValidationError]:
        """Validates ``instance`` against ``schema`` without any I/O.

        Returns:
            The list of errors; empty if the instance is valid
        """
        self._register_top_level(schema)
        errors: List[ValidationError] = []
        if self.loader is not None:
            logger.warning("validate() called on a validator with a loader; the loader is ignored")
            errors.append(LoaderError(description=(
                'you provided a loader, but you are calling validate() synchronously; your loader '
                'will be ignored and validation will fail if any missing $refs are encountered')))
        errors.extend(self._validate_impl(instance, schema))
        return errors

    async def validate_async(self, instance: Any, schema: Dict[str, Any]) -> List[ValidationError]:
        """Validates ``instance`` against ``schema``, fetching missing remote schemas first.

        Without a loader this behaves like ``validate``.

        Returns:
            The list of errors; empty if the instance is valid. A loader or
            recursion-budget failure is returned as a single-element list.
        """
        self._register_top_level(schema)
        if self.loader is not None:
            try:
                await load_missing_refs(self.schema_registry, self.loader, self.max_recursion)
            except LoaderError as e:
                return [e]
        return self._validate_impl(instance, schema)

    def _register_top_level(self, schema: Any) -> None:
        if not isinstance(schema, dict):
            return
        schema_id = schema.get('id')
        if not isinstance(schema_id, str) or not schema_id:
            schema_id = anonymous_schema_id(schema)
        self.schema_registry.register(schema, schema_id)

    def _rule_set(self, schema: Dict[str, Any]) -> Draft04Validator:
        version = schema.get('$schema') or DRAFT_04_SCHEMA_URI
        if isinstance(version, str) and not version.endswith('#'):
            version += '#'
        if not isinstance(version, str) or version not in RULE_SETS:
            logger.warning("Unsupported $schema %r, validating as %s", schema.get('$schema'), DRAFT_04_SCHEMA_URI)
            version = DRAFT_04_SCHEMA_URI
        rule_set = self._rule_sets.get(version)
        if rule_set is None:
            rule_set = self._rule_sets[version] = RULE_SETS[version](self.schema_registry, self.format_registry)
        rule_set.loader_available = self.loader is not None
        return rule_set

    def _validate_impl(self, instance: Any, schema: Any, resolution_scope: Optional[str] = None,
                       instance_context: Optional[str] = None) -> List[ValidationError]:
        if not isinstance(schema, dict):
            return []

        schema_id = schema.get('id')
        if not isinstance(schema_id, str) or not schema_id:
            schema_id = resolution_scope or anonymous_schema_id(schema)
        if not self.schema_registry.is_registered(schema_id):
            self.schema_registry.register(schema, schema_id)

        resolution_scope = resolution_scope or schema_id
        if '#' not in resolution_scope:
            resolution_scope += '#'

        return self._rule_set(schema).validate(instance, schema, resolution_scope, instance_context or '#')


def validate_json_against_schema(instance: Any, schema: Dict[str, Any]) -> List[str]:
    """Validates a JSON instance against a JSON Schema.

    Args:
        instance: The JSON value to validate
        schema: The JSON Schema (draft-04)

    Returns:
        List of validation error messages (empty if valid)
    """
    return [str(error) for error in JsonSchemaValidator().validate(instance, schema)]
