import json
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
import requests

from config import Config

NODE_URL = "https://node.test"
API_URL = "https://api.test"
PLATFORM_KEY = "BC1YLplatform"
ASSOCIATIONS_URL = NODE_URL + "/api/v0/user-associations/query"
NFTS_URL = NODE_URL + "/api/v0/get-nfts-for-user"
REVOKE_URL = API_URL + "/api/remove-author-association/"


def make_response(status: int = 200, payload: Any = None, *, text: Optional[str] = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r._content = (text if text is not None else json.dumps(payload)).encode("utf-8")
    r.encoding = "utf-8"
    return r


class StubSession:
    """Stands in for requests.Session; routes POSTs by exact URL or prefix."""

    def __init__(self):
        self.routes: List[Tuple[str, Callable[[str, Any], requests.Response]]] = []
        self.calls: List[Tuple[str, Any]] = []
        self.closed = False
        self._lock = threading.Lock()

    def route(self, prefix: str, handler: Callable[[str, Any], requests.Response]) -> None:
        self.routes.append((prefix, handler))

    def post(self, url, json=None, timeout=None, **kwargs):
        assert timeout is not None, "every call must carry a timeout"
        with self._lock:
            self.calls.append((url, json))
        for prefix, handler in self.routes:
            if url.startswith(prefix):
                return handler(url, json)
        raise requests.ConnectionError(f"no route for {url}")

    def close(self):
        self.closed = True

    def calls_to(self, prefix: str) -> List[Tuple[str, Any]]:
        return [c for c in self.calls if c[0].startswith(prefix)]


def association_json(aid: str, target: str, *, transactor: str = PLATFORM_KEY,
                     kind: str = "Spatium Author") -> Dict[str, Any]:
    return {
        "AssociationID": aid,
        "TransactorPublicKeyBase58Check": transactor,
        "TargetUserPublicKeyBase58Check": target,
        "AppPublicKeyBase58Check": "BC1YLapp",
        "AssociationType": kind,
        "AssociationValue": "true",
        "ExtraData": None,
        "BlockHeight": 250000,
    }


def nft_json(post_hash: str, *, poster: str = PLATFORM_KEY,
             extra: Optional[Dict[str, str]] = None, owner: str = "BC1YLowner") -> Dict[str, Any]:
    return {
        "NFTEntryResponses": [
            {
                "OwnerPublicKeyBase58Check": owner,
                "SerialNumber": 1,
                "IsForSale": False,
                "MinBidAmountNanos": 0,
                "IsBuyNow": False,
                "BuyNowPriceNanos": 0,
            }
        ],
        "PostEntryResponse": {
            "PostHashHex": post_hash,
            "PosterPublicKeyBase58Check": poster,
            "Body": "Author pass",
            "ImageURLs": [],
            "HasUnlockable": False,
            "PostExtraData": extra or {},
            "NumNFTCopies": 100,
            "TimestampNanos": 1672531200000000000,
        },
    }


def author_extra(expiration: str, nft_type: str = "Spatium Author") -> Dict[str, str]:
    return {"expiration_date": expiration, "nft_type": nft_type}


@pytest.fixture
def config() -> Config:
    return Config(
        deso_node_url=NODE_URL,
        spatium_api_url=API_URL,
        spatium_public_key=PLATFORM_KEY,
        association_type="Spatium Author",
        author_nft_type="Spatium Author",
        association_page_limit=100,
        max_workers=4,
        request_timeout=5,
    )


@pytest.fixture
def session() -> StubSession:
    return StubSession()
