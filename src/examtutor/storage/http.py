import requests

from examtutor.exceptions import ObjectNotFoundError, StorageError

__all__ = ["fetch_url"]


def fetch_url(url: str, timeout: float = 30.0) -> bytes:
    """
    Download an image from a public URL.

    Raises:
        ObjectNotFoundError: If the reference is not an http(s) URL or returns 404.
        StorageError: On network errors or other non-2xx responses.
    """
    if not url.startswith(("http://", "https://")):
        raise ObjectNotFoundError(f"unresolvable image reference: {url!r}")
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise StorageError(f"failed to fetch {url}: {exc}") from exc
    if response.status_code == 404:
        raise ObjectNotFoundError(f"image not found: {url}")
    if not response.ok:
        raise StorageError(f"failed to fetch {url}: HTTP {response.status_code}")
    return response.content
