# spatium_utils.py

import logging
from urllib.parse import quote

import requests

from config import Config
from errors import CallError

logger = logging.getLogger(__name__)

REMOVE_ASSOCIATION_PATH = "/api/remove-author-association/"


def revoke_association(association_id: str, config: Config, session: requests.Session) -> None:
    """Ask the Spatium API to delete an author association. Any 2xx is success; no retry."""
    url = config.spatium_api_url + REMOVE_ASSOCIATION_PATH + quote(association_id, safe="")
    r = None
    try:
        r = session.post(url, timeout=config.request_timeout)
        r.raise_for_status()
    except requests.HTTPError as e:
        raise CallError(
            f"revoke {association_id} returned {r.status_code}: {(r.text or '')[:200]}",
            status_code=r.status_code,
        ) from e
    except requests.RequestException as e:
        raise CallError(f"revoke {association_id} failed: {e}") from e
    logger.info("Revoked association %s", association_id)
