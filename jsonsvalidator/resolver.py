"""Fetches referenced remote schemas until the registry is closed under ``$ref``."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Set, Union

from jsonsvalidator.errors import LoaderError, RecursionBudgetError, SchemaLoaderError
from jsonsvalidator.schemaregistry import SchemaRegistry

logger = logging.getLogger(__name__)

Loader = Callable[[str], Union[Any, Awaitable[Any]]]


async def _fetch(loader: Loader, uri: str) -> Any:
    logger.debug("Fetching schema %s", uri)
    try:
        result = loader(uri)
        if inspect.isawaitable(result):
            result = await result
    except LoaderError:
        raise
    except Exception as e:
        raise SchemaLoaderError(uri, f"failed to load schema {uri}: {e}", e) from e
    return result


async def load_missing_refs(registry: SchemaRegistry, loader: Loader, max_recursion: int,
                            requested: Optional[Set[str]] = None) -> None:
    """Loads every schema the registry is missing, round by round.

    Each round fetches all currently missing URIs concurrently and registers
    the results only after the whole round has completed, so schemas fetched
    in one round can only add to the next round's missing set. A URI is never
    requested twice within one ``requested`` set.

    Args:
        registry: The registry to fill
        loader: ``loader(uri) -> schema``; may be a coroutine function. Raises
            on failure.
        max_recursion: Maximum number of rounds
        requested: URIs already requested by the caller's operation

    Raises:
        SchemaLoaderError: A loader call failed; the rest of that round is discarded
        RecursionBudgetError: Schemas are still missing after ``max_recursion`` rounds
    """
    if requested is None:
        requested = set()
    depth = max_recursion
    while True:
        missing = [uri for uri in registry.get_missing_schemas() if uri not in requested]
        if not missing:
            return
        if depth <= 0:
            raise RecursionBudgetError(missing)

        logger.debug("Loading %d missing schema(s), %d round(s) left: %s",
                     len(missing), depth, ', '.join(missing))
        requested.update(missing)
        schemas = await asyncio.gather(*(_fetch(loader, uri) for uri in missing))
        for uri, schema in zip(missing, schemas):
            registry.register(schema, uri)
        depth -= 1
