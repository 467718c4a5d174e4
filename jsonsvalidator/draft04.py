"""Validates JSON instances against JSON Schema draft-04 schemas.

The engine walks instance and schema together. At each node it checks
``type`` first; if that fails nothing else is evaluated for the node,
because every other keyword assumes a compatible instance. Otherwise every
applicable keyword runs and all errors are collected. Keywords are:
- Any type: enum, allOf, anyOf, oneOf, not, format
- Numbers: multipleOf, maximum/exclusiveMaximum, minimum/exclusiveMinimum
- Strings: maxLength, minLength, pattern
- Arrays: items/additionalItems, maxItems, minItems, uniqueItems
- Objects: maxProperties, minProperties, required,
  properties/patternProperties/additionalProperties, dependencies

A node carrying ``$ref`` is replaced by the referenced node; its other
keywords are ignored.

Termination with recursive schemas follows from the instance: every
recursion either descends into a child of the instance or applies a
different keyword to the same value, and draft-04 has no keyword that
re-enters a schema without one of those. A schema whose ``$ref`` chain
loops on itself without any keyword in between is not a meaningful
draft-04 schema and is not guarded against.
"""

import re
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Pattern

from jsonsvalidator.common import apparent_type, compile_ecma_regex, json_equal
from jsonsvalidator.constants import FETCHABLE_SCHEMES, SUB_SCHEMA_ERROR_KEY
from jsonsvalidator.errors import (ArrayValidationError, CompositeValidationError,
                                   FormatValidationError, NumericValidationError,
                                   ObjectValidationError, SchemaReferenceError,
                                   StringValidationError, TypeValidationError,
                                   ValidationError)
from jsonsvalidator.formats import FormatRegistry
from jsonsvalidator.schemaregistry import SchemaRegistry
from jsonsvalidator.uriutils import encode_pointer_token, resolve, split_fragment


class Keyword(str, Enum):
    """The draft-04 keywords the engine understands. Other keys are ignored."""
    ID = 'id'
    REF = '$ref'
    TYPE = 'type'
    ENUM = 'enum'
    ALL_OF = 'allOf'
    ANY_OF = 'anyOf'
    ONE_OF = 'oneOf'
    NOT = 'not'
    FORMAT = 'format'
    MULTIPLE_OF = 'multipleOf'
    MAXIMUM = 'maximum'
    EXCLUSIVE_MAXIMUM = 'exclusiveMaximum'
    MINIMUM = 'minimum'
    EXCLUSIVE_MINIMUM = 'exclusiveMinimum'
    MAX_LENGTH = 'maxLength'
    MIN_LENGTH = 'minLength'
    PATTERN = 'pattern'
    ITEMS = 'items'
    ADDITIONAL_ITEMS = 'additionalItems'
    MAX_ITEMS = 'maxItems'
    MIN_ITEMS = 'minItems'
    UNIQUE_ITEMS = 'uniqueItems'
    MAX_PROPERTIES = 'maxProperties'
    MIN_PROPERTIES = 'minProperties'
    REQUIRED = 'required'
    PROPERTIES = 'properties'
    PATTERN_PROPERTIES = 'patternProperties'
    ADDITIONAL_PROPERTIES = 'additionalProperties'
    DEPENDENCIES = 'dependencies'


KNOWN_KEYWORDS = frozenset(keyword.value for keyword in Keyword)

# evaluated for every instance type, in this order
GENERAL_KEYWORDS = (Keyword.ENUM, Keyword.ALL_OF, Keyword.ANY_OF, Keyword.ONE_OF,
                    Keyword.NOT, Keyword.FORMAT)

# additionalItems, exclusiveMaximum/Minimum and the property trio are folded
# into the keyword that gives them meaning
KEYWORDS_BY_TYPE = {
    'number': (Keyword.MULTIPLE_OF, Keyword.MAXIMUM, Keyword.MINIMUM),
    'string': (Keyword.MAX_LENGTH, Keyword.MIN_LENGTH, Keyword.PATTERN),
    'array': (Keyword.ITEMS, Keyword.MAX_ITEMS, Keyword.MIN_ITEMS, Keyword.UNIQUE_ITEMS),
    'object': (Keyword.MAX_PROPERTIES, Keyword.MIN_PROPERTIES, Keyword.REQUIRED,
               Keyword.PROPERTIES, Keyword.DEPENDENCIES),
}

PROPERTY_KEYWORDS = (Keyword.PROPERTIES, Keyword.PATTERN_PROPERTIES, Keyword.ADDITIONAL_PROPERTIES)


@dataclass(frozen=True)
class ValidationContext:
    """One step of the walk: what is tested against what, and where."""
    instance: Any
    schema: Dict[str, Any]
    resolution_scope: str
    instance_context: str = '#'

    def sub_schema(self, schema: Any, *scope_tokens: Any) -> 'ValidationContext':
        """Same instance, a nested schema."""
        scope = self.resolution_scope + ''.join('/' + encode_pointer_token(t) for t in scope_tokens)
        return replace(self, schema=schema, resolution_scope=scope)

    def sub_instance(self, instance: Any, key: Any, schema: Any, *scope_tokens: Any) -> 'ValidationContext':
        """A child of the instance against a nested schema."""
        context = self.sub_schema(schema, *scope_tokens)
        return replace(context, instance=instance,
                       instance_context=f"{self.instance_context}/{encode_pointer_token(key)}")


class Draft04Validator:
    """Draft-04 rule-set.

    Args:
        schema_registry: Where ``$ref`` targets are looked up
        format_registry: Where ``format`` checkers are looked up
        loader_available: Whether a loader could have fetched remote
            references; only changes the wording of unresolved-ref errors
    """

    def __init__(self, schema_registry: SchemaRegistry, format_registry: FormatRegistry,
                 loader_available: bool = False) -> None:
        self.schema_registry = schema_registry
        self.format_registry = format_registry
        self.loader_available = loader_available
        self._patterns: Dict[str, Pattern] = {}

    def validate(self, instance: Any, schema: Dict[str, Any], resolution_scope: str,
                 instance_context: str = '#') -> List[ValidationError]:
        """Validates ``instance`` against ``schema``.

        Returns:
            Errors in evaluation order; empty if the instance is valid
        """
        return self._validate(ValidationContext(instance, schema, resolution_scope, instance_context))

    def _validate(self, ctx: ValidationContext) -> List[ValidationError]:
        schema = ctx.schema
        if not isinstance(schema, dict):
            return []

        schema_id = schema.get(Keyword.ID.value)
        if isinstance(schema_id, str) and schema_id:
            ctx = replace(ctx, resolution_scope=resolve(ctx.resolution_scope, schema_id))

        if isinstance(schema.get(Keyword.REF.value), str):
            return self._ref(ctx)

        if KNOWN_KEYWORDS.isdisjoint(schema):
            return []

        errors = self._type(ctx)
        if errors:
            return errors

        for keyword in self.applicable_keywords(ctx):
            errors.extend(self._run_keyword(keyword, ctx))
        return errors

    @staticmethod
    def applicable_keywords(ctx: ValidationContext) -> List[Keyword]:
        """Lists the keywords to run for this instance and schema, in order."""
        schema = ctx.schema
        result = [keyword for keyword in GENERAL_KEYWORDS if keyword.value in schema]

        instance_type = apparent_type(ctx.instance)
        if instance_type == 'integer':
            instance_type = 'number'
        for keyword in KEYWORDS_BY_TYPE.get(instance_type, ()):
            if keyword == Keyword.PROPERTIES:
                # properties, patternProperties and additionalProperties only
                # make sense together and run as one pass
                if any(k.value in schema for k in PROPERTY_KEYWORDS):
                    result.append(keyword)
            elif keyword.value in schema:
                result.append(keyword)
        return result

    def _run_keyword(self, keyword: Keyword, ctx: ValidationContext) -> List[ValidationError]:
        if keyword == Keyword.ENUM:
            return self._enum(ctx)
        elif keyword == Keyword.ALL_OF:
            return self._all_of(ctx)
        elif keyword == Keyword.ANY_OF:
            return self._any_of(ctx)
        elif keyword == Keyword.ONE_OF:
            return self._one_of(ctx)
        elif keyword == Keyword.NOT:
            return self._not(ctx)
        elif keyword == Keyword.FORMAT:
            return self._format(ctx)
        elif keyword == Keyword.MULTIPLE_OF:
            return self._multiple_of(ctx)
        elif keyword == Keyword.MAXIMUM:
            return self._maximum(ctx)
        elif keyword == Keyword.MINIMUM:
            return self._minimum(ctx)
        elif keyword == Keyword.MAX_LENGTH:
            return self._max_length(ctx)
        elif keyword == Keyword.MIN_LENGTH:
            return self._min_length(ctx)
        elif keyword == Keyword.PATTERN:
            return self._pattern(ctx)
        elif keyword == Keyword.ITEMS:
            return self._items(ctx)
        elif keyword == Keyword.MAX_ITEMS:
            return self._max_items(ctx)
        elif keyword == Keyword.MIN_ITEMS:
            return self._min_items(ctx)
        elif keyword == Keyword.UNIQUE_ITEMS:
            return self._unique_items(ctx)
        elif keyword == Keyword.MAX_PROPERTIES:
            return self._max_properties(ctx)
        elif keyword == Keyword.MIN_PROPERTIES:
            return self._min_properties(ctx)
        elif keyword == Keyword.REQUIRED:
            return self._required(ctx)
        elif keyword == Keyword.PROPERTIES:
            return self._properties(ctx)
        elif keyword == Keyword.DEPENDENCIES:
            return self._dependencies(ctx)
        raise ValueError(f"keyword {keyword.value} is not evaluated on its own")

    def _error(self, error_class: Callable[..., ValidationError], ctx: ValidationContext,
               keyword: Keyword, constraint_value: Any = None, tested_value: Any = None,
               description: Optional[str] = None,
               sub_errors: Optional[Dict[str, List[ValidationError]]] = None) -> ValidationError:
        return error_class(ctx.resolution_scope, ctx.instance_context, keyword.value,
                           constraint_value, tested_value, description, sub_errors)

    def _compile(self, pattern: str) -> Pattern:
        compiled = self._patterns.get(pattern)
        if compiled is None:
            compiled = self._patterns[pattern] = compile_ecma_regex(pattern)
        return compiled

    # any instance type

    def _ref(self, ctx: ValidationContext) -> List[ValidationError]:
        ref = ctx.schema[Keyword.REF.value]
        ref_uri = resolve(ctx.resolution_scope, ref)
        target = self.schema_registry.get(ref_uri)
        if target is None:
            description = f"schema not available: {ref_uri}"
            base, _ = split_fragment(ref_uri)
            scheme = base.split(':', 1)[0].lower() if ':' in base else ''
            if scheme in FETCHABLE_SCHEMES and not self.loader_available:
                description += ('; to load remote schemas automatically, call validate_async() '
                                'on a validator constructed with a loader')
            return [self._error(SchemaReferenceError, ctx, Keyword.REF, ref, None, description)]
        return self._validate(replace(ctx, schema=target, resolution_scope=ref_uri))

    def _type(self, ctx: ValidationContext) -> List[ValidationError]:
        if Keyword.TYPE.value not in ctx.schema:
            return []
        declared = ctx.schema[Keyword.TYPE.value]
        types = declared if isinstance(declared, list) else [declared]
        instance_type = apparent_type(ctx.instance)
        if instance_type in types or (instance_type == 'integer' and 'number' in types):
            return []
        return [self._error(TypeValidationError, ctx, Keyword.TYPE, declared, instance_type)]

    def _enum(self, ctx: ValidationContext) -> List[ValidationError]:
        values = ctx.schema[Keyword.ENUM.value]
        if any(json_equal(ctx.instance, value) for value in values):
            return []
        return [self._error(TypeValidationError, ctx, Keyword.ENUM, values, ctx.instance)]

    def _all_of(self, ctx: ValidationContext) -> List[ValidationError]:
        errors = []
        for index, schema in enumerate(ctx.schema[Keyword.ALL_OF.value]):
            errors.extend(self._validate(ctx.sub_schema(schema, Keyword.ALL_OF.value, index)))
        return errors

    def _any_of(self, ctx: ValidationContext) -> List[ValidationError]:
        branches = ctx.schema[Keyword.ANY_OF.value]
        sub_errors: Dict[str, List[ValidationError]] = {}
        for index, schema in enumerate(branches):
            errors = self._validate(ctx.sub_schema(schema, Keyword.ANY_OF.value, index))
            if not errors:
                return []
            sub_errors[SUB_SCHEMA_ERROR_KEY.format(index + 1)] = errors
        description = ('does not validate against any of these schemas; '
                       'it must validate against at least one')
        return [self._error(CompositeValidationError, ctx, Keyword.ANY_OF, branches, None,
                            description, sub_errors)]

    def _one_of(self, ctx: ValidationContext) -> List[ValidationError]:
        branches = ctx.schema[Keyword.ONE_OF.value]
        sub_errors: Dict[str, List[ValidationError]] = {}
        valid_count = 0
        for index, schema in enumerate(branches):
            errors = self._validate(ctx.sub_schema(schema, Keyword.ONE_OF.value, index))
            if errors:
                sub_errors[SUB_SCHEMA_ERROR_KEY.format(index + 1)] = errors
            else:
                valid_count += 1
                if valid_count > 1:
                    break
        if valid_count == 1:
            return []
        if valid_count == 0:
            description = 'does not validate against any of these schemas'
        else:
            description = 'validates against more than one of these schemas'
        description += '; must validate against one and only one of them'
        return [self._error(CompositeValidationError, ctx, Keyword.ONE_OF, branches, None,
                            description, sub_errors)]

    def _not(self, ctx: ValidationContext) -> List[ValidationError]:
        schema = ctx.schema[Keyword.NOT.value]
        if self._validate(ctx.sub_schema(schema, Keyword.NOT.value)):
            return []
        description = 'validates against this schema; must NOT validate against this schema'
        return [self._error(CompositeValidationError, ctx, Keyword.NOT, schema, None, description)]

    def _format(self, ctx: ValidationContext) -> List[ValidationError]:
        name = ctx.schema[Keyword.FORMAT.value]
        checker = self.format_registry.get(name) if isinstance(name, str) else None
        if checker is None:
            return []
        description = checker(ctx.instance, ctx.schema)
        if not description:
            return []
        return [self._error(FormatValidationError, ctx, Keyword.FORMAT, name, ctx.instance, description)]

    # numbers

    def _multiple_of(self, ctx: ValidationContext) -> List[ValidationError]:
        divisor = ctx.schema[Keyword.MULTIPLE_OF.value]
        instance = ctx.instance
        if isinstance(instance, int) and isinstance(divisor, int) and not isinstance(divisor, bool):
            failed = divisor != 0 and instance % divisor != 0
        else:
            # decimal arithmetic on the shortest repr, so 0.0075 is a
            # multiple of 0.0001 even though the binary floats are not
            try:
                x, d = Decimal(repr(instance)), Decimal(repr(divisor))
            except InvalidOperation:
                x = d = Decimal('NaN')
            if not (x.is_finite() and d.is_finite()) or d == 0:
                failed = True
            else:
                # the integer quotient must fit in the context precision
                digits = len(x.as_tuple().digits) + len(d.as_tuple().digits)
                with localcontext() as context:
                    context.prec = max(context.prec, abs(x.adjusted()) + abs(d.adjusted()) + digits + 2)
                    failed = x % d != 0
        if not failed:
            return []
        return [self._error(NumericValidationError, ctx, Keyword.MULTIPLE_OF, divisor, instance)]

    def _maximum(self, ctx: ValidationContext) -> List[ValidationError]:
        maximum = ctx.schema[Keyword.MAXIMUM.value]
        if ctx.schema.get(Keyword.EXCLUSIVE_MAXIMUM.value) is True:
            if ctx.instance >= maximum:
                return [self._error(NumericValidationError, ctx, Keyword.EXCLUSIVE_MAXIMUM,
                                    maximum, ctx.instance)]
        elif ctx.instance > maximum:
            return [self._error(NumericValidationError, ctx, Keyword.MAXIMUM, maximum, ctx.instance)]
        return []

    def _minimum(self, ctx: ValidationContext) -> List[ValidationError]:
        minimum = ctx.schema[Keyword.MINIMUM.value]
        if ctx.schema.get(Keyword.EXCLUSIVE_MINIMUM.value) is True:
            if ctx.instance <= minimum:
                return [self._error(NumericValidationError, ctx, Keyword.EXCLUSIVE_MINIMUM,
                                    minimum, ctx.instance)]
        elif ctx.instance < minimum:
            return [self._error(NumericValidationError, ctx, Keyword.MINIMUM, minimum, ctx.instance)]
        return []

    # strings; lengths are in code points

    def _max_length(self, ctx: ValidationContext) -> List[ValidationError]:
        limit = ctx.schema[Keyword.MAX_LENGTH.value]
        if len(ctx.instance) > limit:
            return [self._error(StringValidationError, ctx, Keyword.MAX_LENGTH, limit, len(ctx.instance))]
        return []

    def _min_length(self, ctx: ValidationContext) -> List[ValidationError]:
        limit = ctx.schema[Keyword.MIN_LENGTH.value]
        if len(ctx.instance) < limit:
            return [self._error(StringValidationError, ctx, Keyword.MIN_LENGTH, limit, len(ctx.instance))]
        return []

    def _pattern(self, ctx: ValidationContext) -> List[ValidationError]:
        pattern = ctx.schema[Keyword.PATTERN.value]
        try:
            compiled = self._compile(pattern)
        except re.error as e:
            return [self._error(StringValidationError, ctx, Keyword.PATTERN, pattern, ctx.instance,
                                f"schema pattern is not a valid regular expression: {e}")]
        if compiled.search(ctx.instance):
            return []
        return [self._error(StringValidationError, ctx, Keyword.PATTERN, pattern, ctx.instance)]

    # arrays

    def _items(self, ctx: ValidationContext) -> List[ValidationError]:
        items = ctx.schema[Keyword.ITEMS.value]
        instance = ctx.instance
        errors = []

        if not isinstance(items, list):
            for index, item in enumerate(instance):
                errors.extend(self._validate(ctx.sub_instance(item, index, items, Keyword.ITEMS.value)))
            return errors

        for index in range(min(len(items), len(instance))):
            errors.extend(self._validate(
                ctx.sub_instance(instance[index], index, items[index], Keyword.ITEMS.value, index)))

        if len(instance) <= len(items):
            return errors
        additional = ctx.schema.get(Keyword.ADDITIONAL_ITEMS.value, True)
        if additional is False:
            description = (f'array length ({len(instance)}) is greater than "items" length '
                           f'({len(items)}) and "additionalItems" is false')
            errors.append(self._error(ArrayValidationError, ctx, Keyword.ADDITIONAL_ITEMS, False,
                                      len(instance), description))
        elif isinstance(additional, dict):
            for index in range(len(items), len(instance)):
                errors.extend(self._validate(
                    ctx.sub_instance(instance[index], index, additional, Keyword.ADDITIONAL_ITEMS.value)))
        return errors

    def _max_items(self, ctx: ValidationContext) -> List[ValidationError]:
        limit = ctx.schema[Keyword.MAX_ITEMS.value]
        if len(ctx.instance) > limit:
            return [self._error(ArrayValidationError, ctx, Keyword.MAX_ITEMS, limit, len(ctx.instance))]
        return []

    def _min_items(self, ctx: ValidationContext) -> List[ValidationError]:
        limit = ctx.schema[Keyword.MIN_ITEMS.value]
        if len(ctx.instance) < limit:
            return [self._error(ArrayValidationError, ctx, Keyword.MIN_ITEMS, limit, len(ctx.instance))]
        return []

    def _unique_items(self, ctx: ValidationContext) -> List[ValidationError]:
        if ctx.schema[Keyword.UNIQUE_ITEMS.value] is not True:
            return []
        errors = []
        instance = ctx.instance
        for x in range(len(instance)):
            for y in range(x + 1, len(instance)):
                if json_equal(instance[x], instance[y]):
                    errors.append(self._error(ArrayValidationError, ctx, Keyword.UNIQUE_ITEMS, True,
                                              instance[x],
                                              f"item at index {x} is repeated at index {y}"))
                    break
        return errors

    # objects

    def _max_properties(self, ctx: ValidationContext) -> List[ValidationError]:
        limit = ctx.schema[Keyword.MAX_PROPERTIES.value]
        if len(ctx.instance) > limit:
            return [self._error(ObjectValidationError, ctx, Keyword.MAX_PROPERTIES, limit, len(ctx.instance))]
        return []

    def _min_properties(self, ctx: ValidationContext) -> List[ValidationError]:
        limit = ctx.schema[Keyword.MIN_PROPERTIES.value]
        if len(ctx.instance) < limit:
            return [self._error(ObjectValidationError, ctx, Keyword.MIN_PROPERTIES, limit, len(ctx.instance))]
        return []

    def _required(self, ctx: ValidationContext) -> List[ValidationError]:
        required = ctx.schema[Keyword.REQUIRED.value]
        missing = [name for name in required if name not in ctx.instance]
        if not missing:
            return []
        return [self._error(ObjectValidationError, ctx, Keyword.REQUIRED, required, missing,
                            'missing: ' + ', '.join(missing))]

    def _properties(self, ctx: ValidationContext) -> List[ValidationError]:
        properties = ctx.schema.get(Keyword.PROPERTIES.value, {})
        pattern_properties = ctx.schema.get(Keyword.PATTERN_PROPERTIES.value, {})
        additional = ctx.schema.get(Keyword.ADDITIONAL_PROPERTIES.value, True)
        errors = []

        patterns = []
        for pattern, schema in pattern_properties.items():
            try:
                patterns.append((pattern, self._compile(pattern), schema))
            except re.error as e:
                errors.append(self._error(ObjectValidationError, ctx, Keyword.PATTERN_PROPERTIES, pattern,
                                          None, f"schema pattern is not a valid regular expression: {e}"))
        if errors:
            return errors

        for key, value in ctx.instance.items():
            matched = False
            if key in properties:
                matched = True
                errors.extend(self._validate(
                    ctx.sub_instance(value, key, properties[key], Keyword.PROPERTIES.value, key)))
            for pattern, compiled, schema in patterns:
                if compiled.search(key):
                    matched = True
                    errors.extend(self._validate(
                        ctx.sub_instance(value, key, schema, Keyword.PATTERN_PROPERTIES.value, pattern)))
            if matched:
                continue
            if additional is False:
                description = (f'property "{key}" not allowed by "properties" or by '
                               f'"patternProperties" and "additionalProperties" is false')
                errors.append(self._error(ObjectValidationError, ctx, Keyword.ADDITIONAL_PROPERTIES,
                                          False, key, description))
            elif isinstance(additional, dict):
                errors.extend(self._validate(
                    ctx.sub_instance(value, key, additional, Keyword.ADDITIONAL_PROPERTIES.value)))
        return errors

    def _dependencies(self, ctx: ValidationContext) -> List[ValidationError]:
        errors = []
        for key, dependency in ctx.schema[Keyword.DEPENDENCIES.value].items():
            if key not in ctx.instance:
                continue
            if isinstance(dependency, list):
                missing = [name for name in dependency if name not in ctx.instance]
                if missing:
                    errors.append(self._error(ObjectValidationError, ctx, Keyword.DEPENDENCIES,
                                              {key: dependency}, missing,
                                              'missing: ' + ', '.join(missing)))
            else:
                # a schema dependency applies to the whole instance; the key
                # name only locates the error
                errors.extend(self._validate(
                    ctx.sub_instance(ctx.instance, key, dependency, Keyword.DEPENDENCIES.value, key)))
        return errors
