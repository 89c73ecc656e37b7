# Team board — remote storage
#
# Loads and saves the whole board through a running board server's
# /api/data endpoints. Optionally falls back to the demo board when the
# server cannot be reached.

import logging
from typing import Optional

import requests

from .errors import PersistenceError, ValidationError
from .schema import AppDocument
from .storage import default_document

logger = logging.getLogger(__name__)


class RemoteStorage:
    """Storage adapter speaking to board_server over HTTP."""

    def __init__(self, base_url: str, timeout: float = 5.0, fallback_to_default: bool = False):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.fallback_to_default = fallback_to_default
        self.cache: Optional[AppDocument] = None

    @property
    def data_url(self) -> str:
        return f"{self.base_url}/api/data"

    def load(self) -> AppDocument:
        """
        GET the document. On failure, raise PersistenceError, or return the
        demo board when fallback_to_default is set.
        """
        try:
            r = requests.get(self.data_url, timeout=self.timeout)
            r.raise_for_status()
            document = AppDocument.from_dict(r.json())
        except (requests.RequestException, ValueError, ValidationError) as e:
            if not self.fallback_to_default:
                raise PersistenceError(f"Failed to load board from {self.data_url}: {e}") from e
            logger.warning(f"Board server unavailable ({e}), using demo board")
            document = default_document()
        self.cache = document
        return document

    def save(self, document: AppDocument) -> AppDocument:
        """PUT the whole document. Returns the document as stored by the server."""
        try:
            r = requests.put(
                self.data_url,
                json=document.to_dict(),
                timeout=self.timeout,
            )
            r.raise_for_status()
            saved = AppDocument.from_dict(r.json())
        except (requests.RequestException, ValueError, ValidationError) as e:
            logger.error(f"Error saving board to {self.data_url}: {e}")
            raise PersistenceError(f"Failed to save board to {self.data_url}: {e}") from e
        self.cache = saved
        return saved


def open_remote_storage(config) -> RemoteStorage:
    """Build remote storage from a Config with remote_url set."""
    if not config.remote_url:
        raise PersistenceError("remote_url is not configured")
    return RemoteStorage(config.remote_url, timeout=config.remote_timeout)
