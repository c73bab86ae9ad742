# deso_utils.py

import logging
from typing import Any, Dict, List, Optional, Set

import requests
from requests.adapters import HTTPAdapter

from config import Config
from errors import FetchError
from models import Association, NFTData, parse_associations, parse_nfts_map

logger = logging.getLogger(__name__)

ASSOCIATIONS_PATH = "/api/v0/user-associations/query"
NFTS_FOR_USER_PATH = "/api/v0/get-nfts-for-user"

_QUERY_FILTERS = {
    "app_public_key": "AppPublicKeyBase58Check",
    "association_value": "AssociationValue",
    "association_value_prefix": "AssociationValuePrefix",
    "target_public_key": "TargetUserPublicKeyBase58Check",
}


def make_session(pool_size: int = 16) -> requests.Session:
    """Session shared by every check; the pool is sized to the worker count."""
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"Accept": "application/json"})
    return session


def post_json(session: requests.Session, url: str, payload: Dict[str, Any], *, timeout: int) -> Any:
    r = None
    try:
        r = session.post(url, json=payload, timeout=timeout)
        r.raise_for_status()
        return r.json()
    except requests.HTTPError as e:
        raise FetchError(
            f"{url} returned {r.status_code}: {(r.text or '')[:200]}",
            status_code=r.status_code,
        ) from e
    except requests.RequestException as e:
        raise FetchError(f"{url} request failed: {e}") from e
    except ValueError as e:
        raise FetchError(f"{url} returned invalid JSON: {e}") from e


# ---------- Associations ----------

def build_association_query(
    config: Config,
    *,
    last_seen_id: Optional[str] = None,
    **filters: str,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {
        "TransactorPublicKeyBase58Check": config.spatium_public_key,
        "AssociationType": config.association_type,
        "Limit": config.association_page_limit,
    }
    for name, value in filters.items():
        if name not in _QUERY_FILTERS:
            raise TypeError(f"unknown association filter: {name}")
        if value is not None:
            query[_QUERY_FILTERS[name]] = value
    if last_seen_id:
        query["LastSeenAssociationID"] = last_seen_id
    return query


def list_author_associations(config: Config, session: requests.Session, **filters: str) -> List[Association]:
    """Return every author association granted by the platform key.

    Follows the LastSeenAssociationID cursor until a short page comes back,
    or until a page brings no association id not already seen. Ids are unique
    in the result.
    Any failure raises FetchError; a partial list is never returned.
    """
    url = config.deso_node_url + ASSOCIATIONS_PATH
    result: List[Association] = []
    seen: Set[str] = set()
    last_seen: Optional[str] = None
    while True:
        query = build_association_query(config, last_seen_id=last_seen, **filters)
        page = parse_associations(post_json(session, url, query, timeout=config.request_timeout))
        new_ids = 0
        for a in page:
            if a.association_id in seen:
                continue
            seen.add(a.association_id)
            new_ids += 1
            if a.transactor_public_key != config.spatium_public_key or a.association_type != config.association_type:
                logger.debug("Skip association %s (transactor=%s, type=%s)",
                             a.association_id, a.transactor_public_key, a.association_type)
                continue
            result.append(a)
        if len(page) < config.association_page_limit:
            break
        if not new_ids:
            logger.warning("Association page after %s had no new ids; stopping", last_seen)
            break
        last_seen = page[-1].association_id
    logger.info("Fetched %d author associations", len(result))
    return result


# ---------- NFTs ----------

def fetch_nfts_for_user(public_key: str, config: Config, session: requests.Session) -> Dict[str, NFTData]:
    url = config.deso_node_url + NFTS_FOR_USER_PATH
    payload = post_json(session, url, {"UserPublicKeyBase58Check": public_key}, timeout=config.request_timeout)
    nfts = parse_nfts_map(payload)
    logger.debug("User %s has %d NFTs", public_key, len(nfts))
    return nfts
