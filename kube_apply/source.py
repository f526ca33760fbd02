"""Library for resolving the manifest content of a resource.

The content comes from exactly one `ManifestSource`:
- `Inline` and `Opaque` content is returned as-is
- `Remote` content is fetched with a single HTTP GET
- `Local` content is read from disk

```python
from kube_apply import source
from kube_apply.manifest import Remote

content = await source.resolve(Remote("https://example.com/crds.yaml"), timeout=30)
```

A non-2xx HTTP response is treated as a `FetchError` so that an error page is
never applied to the cluster as if it were a manifest.
"""

import asyncio
import logging

import aiofiles
import httpx

from .exceptions import ConfigurationError, FetchError, ReadError
from .manifest import Inline, Local, ManifestSource, Opaque, Remote

__all__ = [
    "resolve",
]

_LOGGER = logging.getLogger(__name__)


async def resolve(
    source: ManifestSource,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    """Return the raw manifest bytes for the source.

    The timeout in seconds bounds a fetch or file read.
    """
    if isinstance(source, Inline):
        return source.content
    if isinstance(source, Opaque):
        return source.content.reveal()
    if isinstance(source, Remote):
        return await fetch(source.url, timeout=timeout, transport=transport)
    if isinstance(source, Local):
        return await read(source, timeout=timeout)
    raise ConfigurationError("no content provided")


async def fetch(
    url: str,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    """Fetch the full body of a remote manifest."""
    _LOGGER.info("Fetching manifest %s", url)
    try:
        async with httpx.AsyncClient(
            timeout=timeout, transport=transport, follow_redirects=True
        ) as client:
            response = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as err:
        raise FetchError(
            f"Unable to fetch manifest {url}: {type(err).__name__}: {err}"
        ) from err
    if not response.is_success:
        raise FetchError(
            f"Unable to fetch manifest {url}: HTTP status {response.status_code}"
        )
    _LOGGER.debug("Fetched %d bytes from %s", len(response.content), url)
    return response.content


async def read(source: Local, timeout: float | None = None) -> bytes:
    """Read the full contents of a local manifest file."""
    try:
        return await asyncio.wait_for(_read(source), timeout)
    except asyncio.TimeoutError as err:
        raise ReadError(f"Timed out reading manifest {source.path}") from err
    except OSError as err:
        raise ReadError(f"Unable to read manifest {source.path}: {err}") from err


async def _read(source: Local) -> bytes:
    async with aiofiles.open(source.path, mode="rb") as f:
        return await f.read()
