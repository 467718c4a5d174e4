"""Registry of known schema documents and their sub-schemas.

Documents are indexed by base URI (the identifier without its fragment).
Sub-schemas are reached by JSON Pointer fragments, which need no bookkeeping,
or by plain-name fragments (``"id": "#address"``), which are recorded as
aliases for the pointer path of the node that declared them.

The registry also remembers every remote ``$ref`` it has seen that does not
point at a registered document yet; that set drives the fetch loop in
``jsonsvalidator.resolver``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote

from jsonsvalidator.uriutils import (base_uri, encode_pointer_token, is_fragment_id,
                                     is_pointer_fragment, resolve, split_fragment,
                                     walk_pointer)

logger = logging.getLogger(__name__)


@dataclass
class RegisteredSchema:
    """A top-level entry: the root node and its fragment aliases."""
    schema: Dict[str, Any]
    fragments: Dict[str, str] = field(default_factory=dict)  # name -> JSON Pointer from the root


class SchemaRegistry:
    """Stores schemas by identifier and resolves identifiers back to nodes.

    Registration is first-write-wins: once a base URI is known, registering
    another document under it is a no-op.
    """

    def __init__(self) -> None:
        self._schemas: Dict[str, RegisteredSchema] = {}
        # insertion-ordered set of base URIs
        self._missing_schemas: Dict[str, None] = {}

    def is_registered(self, schema_id: Optional[str]) -> bool:
        """Check whether ``schema_id``, or its base URI, is a known document."""
        if not schema_id:
            return False
        if schema_id in self._schemas:
            return True
        return base_uri(schema_id) in self._schemas

    def register(self, schema: Any, schema_id: Optional[str] = None) -> List[str]:
        """Registers a schema document and every identified node inside it.

        Args:
            schema: The schema document
            schema_id: Identifier to register it under; the document's own
                ``id`` is used as well, resolved against this one

        Returns:
            Base URIs of remote ``$ref`` targets in this document that are not
            registered yet
        """
        if not isinstance(schema, dict):
            return []

        scope = ''
        if schema_id:
            scope, _, _ = self._register_node(schema, schema_id, '', '', schema)

        refs: List[str] = []
        self._walk(schema, scope, '', schema, refs)

        missing: List[str] = []
        for ref in refs:
            if ref not in self._schemas and ref not in missing:
                missing.append(ref)
        for ref in missing:
            if ref not in self._missing_schemas:
                logger.debug("Schema %s references missing schema %s", schema_id or schema.get('id'), ref)
            self._missing_schemas[ref] = None
        return missing

    def _register_node(self, node: Dict[str, Any], node_id: str, scope: str, path: str,
                       root: Dict[str, Any]) -> Tuple[str, str, Dict[str, Any]]:
        """Records one identified node.

        Returns the resolution scope, pointer path and root node that apply
        to the node's descendants.
        """
        resolved = resolve(scope, node_id)
        base = base_uri(resolved)

        if not is_fragment_id(node_id):
            if base and base not in self._schemas:
                self._schemas[base] = RegisteredSchema(schema=node)
                logger.debug("Registered schema %s", base)
            return resolved, '', node

        fragment = unquote(split_fragment(resolved)[1])
        entry = self._schemas.get(base)
        # pointer fragments are resolved by walking, they need no alias
        if entry is not None and entry.schema is root and not is_pointer_fragment(fragment):
            if fragment not in entry.fragments:
                entry.fragments[fragment] = path
                logger.debug("Registered fragment #%s of %s at #%s", fragment, base, path)
        return resolved, path, root

    def _walk(self, node: Any, scope: str, path: str, root: Dict[str, Any], refs: List[str]) -> None:
        if isinstance(node, dict):
            node_id = node.get('id')
            if isinstance(node_id, str) and node_id:
                scope, path, root = self._register_node(node, node_id, scope, path, root)
            ref = node.get('$ref')
            if isinstance(ref, str) and not ref.startswith('#'):
                refs.append(base_uri(resolve(scope, ref)))
            for key, value in node.items():
                if isinstance(value, (dict, list)):
                    self._walk(value, scope, f"{path}/{encode_pointer_token(key)}", root, refs)
        elif isinstance(node, list):
            for index, item in enumerate(node):
                if isinstance(item, (dict, list)):
                    self._walk(item, scope, f"{path}/{index}", root, refs)

    def get(self, schema_id: str) -> Optional[Any]:
        """Resolves an identifier to a schema node.

        Returns:
            The node, or None if the document is unknown or the fragment does
            not lead anywhere
        """
        base, fragment = split_fragment(schema_id)
        entry = self._schemas.get(base)
        if entry is None:
            return None
        if not fragment:
            return entry.schema
        fragment = unquote(fragment)
        if not is_pointer_fragment(fragment):
            fragment = entry.fragments.get(fragment, fragment)
        return walk_pointer(entry.schema, fragment)

    def get_missing_schemas(self) -> List[str]:
        """Returns base URIs that have been referenced but are still not registered."""
        return [uri for uri in self._missing_schemas if not self.is_registered(uri)]
