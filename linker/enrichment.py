"""Page metadata lookup for new links."""
import sys
from typing import Optional

import httpx
import trafilatura

from linker.config import get_config


async def fetch_page_title(url: str, timeout: Optional[float] = None) -> Optional[str]:
    """Fetch a page and extract its title.

    Args:
        url: URL to fetch
        timeout: Request timeout in seconds (defaults to config)

    Returns:
        Page title or None if it could not be determined
    """
    if timeout is None:
        timeout = get_config().fetch_timeout

    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": "linker/0.1 (link title lookup)"}
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        print(f"[Enrichment] HTTP error fetching {url}: {e}", file=sys.stderr)
        return None

    metadata = trafilatura.extract_metadata(response.text)
    if metadata is None or not metadata.title:
        print(f"[Enrichment] No title found for {url}", file=sys.stderr)
        return None

    return metadata.title.strip()
