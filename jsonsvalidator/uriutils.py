"""URI and JSON Pointer helpers used for schema identity.

Every identifier that comes out of ``resolve`` carries a fragment, even an
empty one, so ``base_uri`` can always strip it the same way.
"""

from typing import Any, Tuple
from urllib.parse import unquote, urldefrag, urljoin, urlparse

import jsonpointer
from jsonpointer import JsonPointerException


def resolve(scope: str, ref: str) -> str:
    """Resolve ``ref`` against ``scope`` and normalize to "always has a fragment".

    Args:
        scope: The resolution scope (an absolute or relative URI)
        ref: The identifier or reference to resolve

    Returns:
        The resolved URI, ending in ``#`` if it had no fragment
    """
    if not scope:
        result = ref
    elif ref.startswith('#'):
        # urljoin gives up on schemes it does not know (anon-schema://),
        # a fragment-only reference never needs more than the base
        result = base_uri(scope) + ref
    else:
        result = urljoin(scope, ref)
    if '#' not in result:
        result += '#'
    return result


def base_uri(uri: str) -> str:
    """Return ``uri`` with any fragment removed."""
    return urldefrag(uri).url


def split_fragment(uri: str) -> Tuple[str, str]:
    """Split ``uri`` into its base URI and its fragment (without the ``#``)."""
    result = urldefrag(uri)
    return result.url, result.fragment


def is_pointer_fragment(fragment: str) -> bool:
    """Check whether a fragment (without ``#``) is JSON Pointer shaped."""
    return fragment.startswith('/')


def is_fragment_id(identifier: str) -> bool:
    """Check whether an identifier names a fragment rather than a document.

    ``"#"`` and identifiers without a fragment name a whole document.
    """
    return bool(urlparse(identifier).fragment)


def decode_pointer_token(token: str) -> str:
    """Decode one JSON Pointer reference token.

    ``~1`` must be replaced before ``~0``, otherwise ``~01`` would decode to
    ``/`` instead of ``~1``.
    """
    return token.replace('~1', '/').replace('~0', '~')


def encode_pointer_token(token: Any) -> str:
    """Encode a key or array index as a JSON Pointer reference token."""
    return str(token).replace('~', '~0').replace('/', '~1')


def resolve_pointer(document: Any, fragment: str) -> Any:
    """Walk a JSON Pointer fragment (without ``#``) through ``document``.

    Args:
        document: The root node to walk
        fragment: The pointer, e.g. ``/definitions/foo``; may be percent-encoded

    Returns:
        The node the pointer designates, or None if any step is missing
    """
    return walk_pointer(document, unquote(fragment))


def walk_pointer(document: Any, pointer: str) -> Any:
    """Like ``resolve_pointer``, for a pointer that is already percent-decoded."""
    if not pointer:
        return document
    if not is_pointer_fragment(pointer):
        return None
    tokens = [decode_pointer_token(token) for token in pointer.split('/')[1:]]
    try:
        result = jsonpointer.JsonPointer.from_parts(tokens).resolve(document)
    except JsonPointerException:
        return None
    if isinstance(result, jsonpointer.EndOfList):
        return None
    return result
