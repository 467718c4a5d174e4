"""

Command line utility to validate JSON documents against JSON Schema (draft-04).

"""

import argparse
import asyncio
import json
import logging
import sys

from jsonsvalidator import _version
from jsonsvalidator.common import load_meta_schema
from jsonsvalidator.constants import DRAFT_04_SCHEMA_URI
from jsonsvalidator.validator import JsonSchemaValidator


def load_json_file(file_path):
    """Load a JSON document from a file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def print_errors(errors):
    """Print validation errors as a JSON array."""
    print(json.dumps([error.to_dict() for error in errors], indent=2, default=str))


def create_parser():
    """Create the argument parser."""
    parser = argparse.ArgumentParser(description='Validate a JSON document against a JSON Schema (draft-04).')
    parser.add_argument('instance', nargs='?', help='The JSON document to validate.')
    parser.add_argument('schema', nargs='?',
                        help='The JSON Schema to validate against. Defaults to the draft-04 meta-schema.')
    parser.add_argument('--register', action='append', default=[],
                        help='Comma-separated schema files to register before validating, so they can be $ref\'d by id.')
    parser.add_argument('--fetch', action='store_true', help='Fetch missing remote $refs over HTTP(S).')
    parser.add_argument('--quiet', action='store_true', help='Do not print anything; only set the exit code.')
    parser.add_argument('--verbose', action='store_true', help='Log registration and schema loading.')
    parser.add_argument('--version', action='store_true', help='Print the version of jsonsvalidator.')
    return parser


def main(argv=None):
    """Main function for the command line utility."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f'jsonsvalidator {_version.version}')
        return

    if args.instance is None:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    def printmsg(s):
        if not args.quiet:
            print(s)

    try:
        instance = load_json_file(args.instance)
        meta_schema = load_meta_schema()
        validator = JsonSchemaValidator(JsonSchemaValidator.loaders['http'] if args.fetch else None)
        validator.register(meta_schema, DRAFT_04_SCHEMA_URI)

        for value in args.register:
            for file_path in filter(None, (p.strip() for p in value.split(','))):
                validator.register(load_json_file(file_path))

        if args.schema:
            schema = load_json_file(args.schema)
            if args.fetch:
                schema_errors = asyncio.run(validator.validate_async(schema, meta_schema))
            else:
                schema_errors = validator.validate(schema, meta_schema)
            if schema_errors:
                printmsg(f'Schema {args.schema} is not a valid JSON Schema:')
                if not args.quiet:
                    print_errors(schema_errors)
                sys.exit(1)
        else:
            schema = meta_schema

        if args.fetch:
            errors = asyncio.run(validator.validate_async(instance, schema))
        else:
            errors = validator.validate(instance, schema)
    except (OSError, ValueError) as e:
        printmsg(f'Error: {e}')
        sys.exit(1)

    if errors:
        printmsg(f'{args.instance} is not valid:')
        if not args.quiet:
            print_errors(errors)
        sys.exit(1)
    printmsg(f'{args.instance} is valid')


if __name__ == "__main__":
    main()
