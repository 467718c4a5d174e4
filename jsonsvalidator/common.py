"""
Common utility functions for jsonsvalidator.
"""

import hashlib
import json
import os
import re
from typing import Any, Pattern

from jsonsvalidator.constants import ANON_URI_SCHEME

META_SCHEMA_FILE = os.path.join(os.path.dirname(__file__), 'schemas', 'draft-04-schema.json')


def apparent_type(value: Any) -> str:
    """Classify a JSON value by its JSON Schema primitive type.

    Numbers without a fractional part are reported as ``integer``, so
    ``42.0`` is an integer and ``42.5`` is a number.
    """
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, int):
        return 'integer'
    if isinstance(value, float):
        if value.is_integer():
            return 'integer'
        return 'number'
    if isinstance(value, (list, tuple)):
        return 'array'
    return 'object'


def json_equal(x: Any, y: Any) -> bool:
    """Equality as defined by JSON Schema.

    Objects compare by key set regardless of order, arrays element-wise in
    order. Booleans never equal numbers, but ``17 == 17.0``.
    """
    if isinstance(x, (list, tuple)):
        if not isinstance(y, (list, tuple)) or len(x) != len(y):
            return False
        return all(json_equal(a, b) for a, b in zip(x, y))

    if isinstance(x, dict):
        if not isinstance(y, dict) or len(x) != len(y):
            return False
        return all(key in y and json_equal(value, y[key]) for key, value in x.items())

    if isinstance(y, (list, tuple, dict)):
        return False
    if isinstance(x, bool) or isinstance(y, bool):
        return isinstance(x, bool) and isinstance(y, bool) and x == y
    if x is None or y is None:
        return x is None and y is None
    if isinstance(x, (int, float)) != isinstance(y, (int, float)):
        return False
    return x == y


def schema_hash(schema: Any) -> str:
    """Return a content hash for a schema.

    Keys are sorted, so the hash does not depend on the insertion order of
    the mapping.
    """
    s = json.dumps(schema, sort_keys=True, separators=(',', ':'), default=str).encode('utf-8')
    return hashlib.sha1(s).hexdigest()


def anonymous_schema_id(schema: Any) -> str:
    """Mint an identifier for a schema that does not declare one."""
    return f"{ANON_URI_SCHEME}://{schema_hash(schema)}/#"


def load_meta_schema() -> dict:
    """Load the bundled draft-04 meta-schema."""
    with open(META_SCHEMA_FILE, 'r', encoding='utf-8') as f:
        return json.load(f)


def compile_ecma_regex(pattern: str) -> Pattern:
    """Compile a schema regular expression with ECMA 262 semantics.

    ``\\d`` and ``\\w`` match ASCII only, and ``$`` outside a character class
    matches only at the very end of the string, not before a trailing newline.

    Raises:
        re.error: If the pattern is not a valid regular expression
    """
    translated = []
    in_class = False
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == '\\':
            translated.append(pattern[i:i + 2])
            i += 2
            continue
        if in_class:
            if ch == ']':
                in_class = False
        elif ch == '[':
            in_class = True
        elif ch == '$':
            ch = r'\Z'
        translated.append(ch)
        i += 1
    return re.compile(''.join(translated), re.ASCII)
