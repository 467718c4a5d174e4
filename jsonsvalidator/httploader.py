"""Built-in loader: fetches schemas over HTTP(S) or from ``file://`` URIs."""

import asyncio
import json
import logging
import os
from typing import Any
from urllib.parse import unquote, urlparse

import requests

from jsonsvalidator.constants import FETCHABLE_SCHEMES, HTTP_TIMEOUT_SECONDS
from jsonsvalidator.errors import SchemaLoaderError
from jsonsvalidator.uriutils import base_uri

logger = logging.getLogger(__name__)


def fetch_schema(uri: str) -> Any:
    """
    Fetches and parses the schema document at the specified URI.

    Args:
        uri (str): The schema URI. A fragment, if any, is ignored.

    Returns:
        The parsed JSON document.

    Raises:
        SchemaLoaderError: If the scheme is unsupported, the request fails,
            the server answers with a non-2xx status, or the body is not JSON.
    """
    url = base_uri(uri)
    parsed_url = urlparse(url)
    scheme = parsed_url.scheme.lower()

    if scheme in FETCHABLE_SCHEMES:
        try:
            response = requests.get(url, timeout=HTTP_TIMEOUT_SECONDS)
        except requests.RequestException as e:
            raise SchemaLoaderError(url, f"error requesting {url}: {e}", e) from e
        if not 200 <= response.status_code < 300:
            raise SchemaLoaderError(url, f"could not retrieve {url}: HTTP status {response.status_code}")
        text = response.text
    elif scheme == 'file':
        file_path = unquote(parsed_url.netloc + parsed_url.path)
        # file:///C:/x yields /C:/x on Windows
        if os.name == 'nt' and file_path.startswith('/'):
            file_path = file_path[1:]
        try:
            with open(file_path, 'r', encoding='utf-8') as file:
                text = file.read()
        except OSError as e:
            raise SchemaLoaderError(url, f"error reading {file_path}: {e}", e) from e
    else:
        raise SchemaLoaderError(url, f"unsupported URI scheme '{scheme}' for {url}")

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaLoaderError(url, f"response from {url} is not valid JSON: {e}", e) from e


async def http_loader(uri: str) -> Any:
    """Loader capability for ``JsonSchemaValidator``; runs ``fetch_schema`` off the event loop."""
    logger.debug("GET %s", uri)
    return await asyncio.to_thread(fetch_schema, uri)
