"""Constants for the jsonsvalidator package.

These are the defaults every validator starts with. Per-instance overrides go
through the constructor arguments or attributes of ``JsonSchemaValidator``.
"""

# $schema URI of the only rule-set shipped today; also the fallback for
# schemas that do not declare one
DRAFT_04_SCHEMA_URI = 'http://json-schema.org/draft-04/schema#'

# Scheme used to mint identifiers for schemas that do not declare an "id"
ANON_URI_SCHEME = 'anon-schema'

# How many rounds of loader fetches validate_async() will issue before giving up
DEFAULT_MAX_RECURSION = 5

# Timeout for the built-in HTTP loader
HTTP_TIMEOUT_SECONDS = 30

# Key format for the per-branch error map attached to anyOf/oneOf errors
SUB_SCHEMA_ERROR_KEY = 'sub-schema-{}'

# Schemes the built-in loader can fetch; a $ref to one of these that could not
# be resolved gets a hint about validate_async()
FETCHABLE_SCHEMES = ('http', 'https')
