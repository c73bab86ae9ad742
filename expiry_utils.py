# expiry_utils.py

import time
import logging
from typing import Dict, List, Optional

from errors import ParseError
from models import NFTData

logger = logging.getLogger(__name__)

EXPIRATION_DATE_KEY = "expiration_date"
NFT_TYPE_KEY = "nft_type"


def now_unix_seconds() -> int:
    return int(time.time())


def parse_expiration_date(raw: str) -> int:
    """Parse a base-10 Unix seconds string."""
    try:
        return int(str(raw).strip(), 10)
    except (TypeError, ValueError) as e:
        raise ParseError(f"invalid expiration_date {raw!r}") from e


def find_expired_author_posts(
    nfts: Dict[str, NFTData],
    expected_poster: str,
    *,
    author_nft_type: str,
    now: Optional[int] = None,
) -> List[str]:
    """Post hashes of author NFTs from `expected_poster` whose expiration has passed.

    A post is considered only when its extra data carries both
    `expiration_date` and `nft_type`. It qualifies when now > expiration_date
    (equality is still valid) and nft_type == author_nft_type. Unparseable
    dates are logged and treated as not expired.
    """
    if now is None:
        now = now_unix_seconds()
    expired: List[str] = []
    for post_hash, nft in nfts.items():
        post = nft.post
        if post.poster_public_key != expected_poster:
            continue
        extra = post.extra_data or {}
        if EXPIRATION_DATE_KEY not in extra or NFT_TYPE_KEY not in extra:
            logger.debug("Post %s lacks expiry marker, skipping", post_hash)
            continue
        try:
            expires_at = parse_expiration_date(extra[EXPIRATION_DATE_KEY])
        except ParseError as e:
            logger.warning("Post %s: %s", post_hash, e)
            continue
        if now > expires_at and extra[NFT_TYPE_KEY] == author_nft_type:
            expired.append(post_hash)
    return expired


def is_author_expired(
    nfts: Dict[str, NFTData],
    expected_poster: str,
    *,
    author_nft_type: str,
    now: Optional[int] = None,
) -> bool:
    return bool(find_expired_author_posts(nfts, expected_poster, author_nft_type=author_nft_type, now=now))
