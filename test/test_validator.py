"""Tests for the JsonSchemaValidator interface."""

import os
import sys
import unittest

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from jsonsvalidator.common import load_meta_schema
from jsonsvalidator.constants import DEFAULT_MAX_RECURSION, DRAFT_04_SCHEMA_URI
from jsonsvalidator.errors import (LoaderError, RecursionBudgetError, SchemaLoaderError,
                                   SchemaReferenceError)
from jsonsvalidator.httploader import http_loader
from jsonsvalidator.validator import JsonSchemaValidator, validate_json_against_schema


class TestSyncValidation(unittest.TestCase):
    """Test synchronous validation."""

    def test_valid_and_invalid(self):
        """Test a valid and an invalid instance."""
        validator = JsonSchemaValidator()
        schema = {'type': 'object', 'required': ['name'], 'properties': {'name': {'type': 'string'}}}
        self.assertEqual(validator.validate({'name': 'x'}, schema), [])
        self.assertEqual(len(validator.validate({'name': 1}, schema)), 1)

    def test_reuse_across_calls(self):
        """Test reusing a validator."""
        validator = JsonSchemaValidator()
        schema = {'maximum': 3}
        for _ in range(3):
            self.assertEqual(validator.validate(1, schema), [])
            self.assertEqual(len(validator.validate(4, schema)), 1)

    def test_anonymous_schema_registered(self):
        """Test that a schema without an id is registered."""
        validator = JsonSchemaValidator()
        validator.validate(1, {'type': 'integer', 'items': {'$ref': 'http://elsewhere/'}})
        self.assertEqual(validator.get_missing_schemas(), ['http://elsewhere/'])

    def test_register_then_reference(self):
        """Test referencing a registered schema."""
        validator = JsonSchemaValidator()
        self.assertEqual(validator.register({'type': 'string'}, 'http://example.com/str'), [])
        self.assertTrue(validator.is_registered('http://example.com/str#'))
        self.assertEqual(validator.validate('x', {'$ref': 'http://example.com/str'}), [])
        self.assertEqual(len(validator.validate(1, {'$ref': 'http://example.com/str'})), 1)

    def test_register_reports_missing(self):
        """Test that register reports missing references."""
        validator = JsonSchemaValidator()
        self.assertEqual(validator.register({'id': 'http://a/b', 'oneOf': [{'$ref': 'http://missing/'}]}),
                         ['http://missing/'])
        self.assertEqual(validator.get_missing_schemas(), ['http://missing/'])
        validator.register({'id': 'http://missing/', 'type': 'string'})
        self.assertEqual(validator.get_missing_schemas(), [])

    def test_validators_do_not_share_registries(self):
        """Test that validators have separate registries."""
        first = JsonSchemaValidator()
        second = JsonSchemaValidator()
        first.register({'id': 'http://only/first', 'type': 'string'})
        self.assertFalse(second.is_registered('http://only/first'))
        errors = second.validate('x', {'$ref': 'http://only/first#'})
        self.assertIsInstance(errors[0], SchemaReferenceError)

    def test_add_format(self):
        """Test add_format."""
        validator = JsonSchemaValidator()
        validator.add_format('uri', lambda instance, schema: None)
        self.assertEqual(validator.validate('not a uri', {'format': 'uri'}), [])
        self.assertEqual(len(JsonSchemaValidator().validate('not a uri', {'format': 'uri'})), 1)

    def test_sync_validate_with_loader_reports_loader_error(self):
        """Test sync validation on a validator with a loader."""
        validator = JsonSchemaValidator(loader=lambda uri: {})
        with self.assertLogs('jsonsvalidator.validator', level='WARNING'):
            errors = validator.validate('x', {'type': 'integer'})
        self.assertEqual(len(errors), 2)
        self.assertIsInstance(errors[0], LoaderError)
        self.assertIn('synchronously', errors[0].description)
        self.assertEqual(errors[1].constraint_name, 'type')

    def test_unknown_schema_version_falls_back(self):
        """Test that an unknown $schema falls back to draft-04."""
        validator = JsonSchemaValidator()
        schema = {'$schema': 'http://json-schema.org/draft-03/schema#', 'type': 'string'}
        with self.assertLogs('jsonsvalidator.validator', level='WARNING') as cm:
            errors = validator.validate(1, schema)
        self.assertEqual(len(errors), 1)
        self.assertIn('draft-03', cm.output[0])

    def test_non_string_schema_version_falls_back(self):
        """Test that a non-string $schema is validated as draft-04."""
        validator = JsonSchemaValidator()
        for version in (['x'], {'uri': DRAFT_04_SCHEMA_URI}, 4):
            with self.assertLogs('jsonsvalidator.validator', level='WARNING') as cm:
                errors = validator.validate(1, {'$schema': version, 'type': 'string'})
            self.assertEqual(len(errors), 1, version)
            self.assertEqual(errors[0].constraint_name, 'type')
            self.assertIn('Unsupported $schema', cm.output[0])

    def test_draft04_schema_without_trailing_hash(self):
        """Test a draft-04 $schema without the trailing hash."""
        schema = {'$schema': 'http://json-schema.org/draft-04/schema', 'type': 'string'}
        self.assertEqual(JsonSchemaValidator().validate('x', schema), [])

    def test_meta_schema_validates_itself(self):
        """Test that the meta-schema validates itself."""
        meta_schema = load_meta_schema()
        validator = JsonSchemaValidator()
        validator.register(meta_schema, DRAFT_04_SCHEMA_URI)
        self.assertEqual(validator.validate(meta_schema, meta_schema), [])

    def test_meta_schema_rejects_bad_schema(self):
        """Test that the meta-schema rejects a bad schema."""
        meta_schema = load_meta_schema()
        validator = JsonSchemaValidator()
        self.assertEqual(validator.validate({'type': 'string', 'minLength': 2}, meta_schema), [])
        self.assertNotEqual(validator.validate({'type': 'strin'}, meta_schema), [])
        self.assertNotEqual(validator.validate({'minLength': -1}, meta_schema), [])
        self.assertNotEqual(validator.validate({'required': []}, meta_schema), [])

    def test_defaults(self):
        """Test the default attributes."""
        validator = JsonSchemaValidator()
        self.assertIsNone(validator.loader)
        self.assertEqual(validator.max_recursion, DEFAULT_MAX_RECURSION)
        self.assertIs(JsonSchemaValidator.loaders['http'], http_loader)

    def test_validate_json_against_schema(self):
        """Test validate_json_against_schema."""
        self.assertEqual(validate_json_against_schema('x', {'type': 'string'}), [])
        messages = validate_json_against_schema({'first': 'A'}, {'required': ['first', 'last']})
        self.assertEqual(messages, ['missing: last at #'])


class TestAsyncValidation(unittest.IsolatedAsyncioTestCase):
    """Test asynchronous validation."""

    async def test_without_loader(self):
        """Test async validation without a loader."""
        validator = JsonSchemaValidator()
        self.assertEqual(await validator.validate_async('x', {'type': 'string'}), [])
        errors = await validator.validate_async(1, {'$ref': 'http://example.org/foo#'})
        self.assertIsInstance(errors[0], SchemaReferenceError)

    async def test_loader_resolves_remote_refs(self):
        """Test that the loader resolves remote references."""
        schemas = {
            'http://example.org/person': {
                'type': 'object',
                'properties': {'address': {'$ref': 'http://example.org/address#'}},
            },
            'http://example.org/address': {
                'type': 'object',
                'required': ['city'],
            },
        }
        requests = []

        async def loader(uri):
            requests.append(uri)
            return schemas[uri]

        validator = JsonSchemaValidator(loader)
        schema = {'$ref': 'http://example.org/person#'}
        self.assertEqual(await validator.validate_async({'address': {'city': 'Oslo'}}, schema), [])
        errors = await validator.validate_async({'address': {}}, schema)
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].instance_context, '#/address')
        self.assertEqual(errors[0].resolution_scope, 'http://example.org/address#')
        self.assertEqual(requests, ['http://example.org/person', 'http://example.org/address'])

    async def test_loader_failure_is_single_error(self):
        """Test that a loader failure is a single error."""
        async def loader(uri):
            raise ConnectionError('unreachable')

        validator = JsonSchemaValidator(loader)
        errors = await validator.validate_async(1, {'$ref': 'http://example.org/foo#'})
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], SchemaLoaderError)
        self.assertIn('unreachable', errors[0].description)

    async def test_recursion_budget(self):
        """Test the recursion budget."""
        def loader(uri):
            index = int(uri.rsplit('/', 1)[1])
            return {'$ref': f'http://chain/{index + 1}'}

        validator = JsonSchemaValidator(loader, max_recursion=3)
        errors = await validator.validate_async(1, {'$ref': 'http://chain/0'})
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], RecursionBudgetError)
        self.assertEqual(errors[0].missing, ['http://chain/3'])

    async def test_max_recursion_attribute(self):
        """Test the max_recursion attribute."""
        validator = JsonSchemaValidator(lambda uri: {'type': 'integer'})
        validator.max_recursion = 0
        errors = await validator.validate_async(1, {'$ref': 'http://late/'})
        self.assertIsInstance(errors[0], RecursionBudgetError)


if __name__ == '__main__':
    unittest.main()
