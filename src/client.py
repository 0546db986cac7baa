"""Matrix client factory for the report mention bot.

We explicitly manage the client's lifecycle (login, first sync, sync loop)
in app.py so it is obvious when the session is created and when it ends.
"""

from __future__ import annotations

import logging
import os

from nio import AsyncClient, AsyncClientConfig

from settings import Settings


def build_client(settings: Settings) -> AsyncClient:
    """Create a matrix-nio client from validated settings.

    The client store lives in the data dir next to the persisted session.
    """

    os.makedirs(settings.store_path, exist_ok=True)

    logging.getLogger(__name__).info("Initializing Matrix client for %s", settings.homeserver_url)

    config = AsyncClientConfig(encryption_enabled=False, store_sync_tokens=False)
    return AsyncClient(
        settings.homeserver_url,
        settings.mxid,
        store_path=settings.store_path,
        config=config,
    )
