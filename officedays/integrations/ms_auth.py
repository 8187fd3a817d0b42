"""
Office Day Tracker — Microsoft Graph client.

Outlook office days go through an app registration (client secret) when
CALENDAR_PROVIDER=outlook. One GraphServiceClient is kept per tenant and
client id, so changing either in the settings yields a fresh client.
"""

from __future__ import annotations

import logging

from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient

from officedays.config import settings

logger = logging.getLogger(__name__)

GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]

_clients: dict[tuple[str, str], GraphServiceClient] = {}


def graph_credentials_configured() -> bool:
    return bool(settings.MS_CLIENT_ID and settings.MS_CLIENT_SECRET)


def get_graph_client() -> GraphServiceClient:
    """Return the Graph client for the configured app registration.

    Raises RuntimeError when MS_CLIENT_ID or MS_CLIENT_SECRET is unset;
    the Outlook adapter reports that as an undetermined permission.
    """
    if not graph_credentials_configured():
        raise RuntimeError("MS_CLIENT_ID and MS_CLIENT_SECRET must be set for Outlook")

    key = (settings.MS_TENANT_ID, settings.MS_CLIENT_ID)
    client = _clients.get(key)
    if client is None:
        credential = ClientSecretCredential(
            tenant_id=key[0],
            client_id=key[1],
            client_secret=settings.MS_CLIENT_SECRET,
        )
        client = GraphServiceClient(credentials=credential, scopes=GRAPH_SCOPES)
        _clients[key] = client
        logger.info("Graph client ready for tenant %s", key[0])
    return client
