import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import requests

from config import Config, load_config
from deso_utils import fetch_nfts_for_user, list_author_associations, make_session
from errors import CallError, CheckAssociationsFailure, FetchError
from expiry_utils import find_expired_author_posts
from models import Association
from spatium_utils import revoke_association

logger = logging.getLogger()
logger.setLevel(logging.INFO)


@dataclass
class CheckOutcome:
    association_id: str
    target_public_key: str
    expired: bool = False
    revoked: bool = False
    dry_run: bool = False
    expired_posts: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class JobResult:
    outcomes: List[CheckOutcome] = field(default_factory=list)
    abandoned: List[str] = field(default_factory=list)

    @property
    def checked(self) -> int:
        return sum(1 for o in self.outcomes if o.error is None)

    @property
    def revoked(self) -> List[str]:
        return [o.association_id for o in self.outcomes if o.revoked]

    @property
    def errors(self) -> List[Tuple[str, str]]:
        return [(o.association_id, o.error) for o in self.outcomes if o.error is not None]

    def summary(self) -> str:
        parts = [
            f"checked={self.checked}",
            f"expired={sum(1 for o in self.outcomes if o.expired)}",
            f"revoked={len(self.revoked)}",
            f"errors={len(self.errors)}",
        ]
        if self.abandoned:
            parts.append(f"abandoned={len(self.abandoned)}")
        return "Success! " + " ".join(parts)


# ---------- One association ----------

def check_association(
    association: Association,
    config: Config,
    session: requests.Session,
    *,
    now: Optional[int] = None,
) -> CheckOutcome:
    """Fetch the grantee's NFTs, and revoke the association if its author NFT expired."""
    aid = association.association_id
    outcome = CheckOutcome(association_id=aid, target_public_key=association.target_public_key)

    try:
        nfts = fetch_nfts_for_user(association.target_public_key, config, session)
    except FetchError as e:
        logger.warning("Check %s: failed to get nfts for %s: %s", aid, association.target_public_key, e)
        outcome.error = f"fetch: {e}"
        return outcome

    expired_posts = find_expired_author_posts(
        nfts,
        config.spatium_public_key,
        author_nft_type=config.author_nft_type,
        now=now,
    )
    if not expired_posts:
        return outcome
    outcome.expired = True
    outcome.expired_posts = expired_posts
    logger.info("Check %s: author NFT expired (posts=%s)", aid, ",".join(expired_posts))

    if config.dry_run:
        outcome.dry_run = True
        logger.info("Check %s: dry run, not revoking", aid)
        return outcome

    try:
        revoke_association(aid, config, session)
        outcome.revoked = True
    except CallError as e:
        logger.warning("Check %s: revoke failed: %s", aid, e)
        outcome.error = f"revoke: {e}"
    return outcome


def _check_guarded(association: Association, config: Config, session: requests.Session,
                   now: Optional[int]) -> CheckOutcome:
    try:
        return check_association(association, config, session, now=now)
    except Exception as e:
        logger.exception("Check %s crashed: %r", association.association_id, e)
        return CheckOutcome(
            association_id=association.association_id,
            target_public_key=association.target_public_key,
            error=f"unexpected: {e!r}",
        )


# ---------- Fan-out ----------

def run_check(
    associations: List[Association],
    config: Config,
    session: requests.Session,
    *,
    deadline_seconds: Optional[float] = None,
    now: Optional[int] = None,
) -> JobResult:
    """Check every association concurrently and wait for all of them.

    A failing check is recorded in its outcome and does not affect the others.
    Checks not finished by `deadline_seconds` are abandoned; they are picked
    up again on the next scheduled run.
    """
    if not associations:
        return JobResult()

    workers = min(config.max_workers, len(associations))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="check")
    futures = [(a, executor.submit(_check_guarded, a, config, session, now)) for a in associations]
    try:
        wait([f for _, f in futures], timeout=deadline_seconds)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    result = JobResult()
    # a check may finish between the wait timing out and this loop
    for association, future in futures:
        if future.done() and not future.cancelled():
            result.outcomes.append(future.result())
        else:
            result.abandoned.append(association.association_id)
    if result.abandoned:
        logger.warning("Deadline reached, abandoned %d checks: %s",
                       len(result.abandoned), ",".join(result.abandoned))
    return result


# ---------- Entry point ----------

def _deadline_seconds(context: Any, config: Config) -> float:
    remaining = getattr(context, "get_remaining_time_in_millis", None)
    if callable(remaining):
        return max(1.0, remaining() / 1000.0 - config.deadline_margin_seconds)
    return float(config.job_timeout_seconds)


def lambda_handler(event, context):
    config = load_config()
    logger.setLevel(config.log_level)
    ev = event if isinstance(event, dict) else {}
    logger.info("TRIGGER source=%s id=%s dry_run=%s", ev.get("source"), ev.get("id"), config.dry_run)

    session = make_session(config.max_workers)
    result = None
    try:
        try:
            associations = list_author_associations(config, session)
        except FetchError as e:
            body = f"Failed to get all associations: {e}"
            logger.error(body)
            raise CheckAssociationsFailure(body) from e
        logger.info("STEP1 associations=%d", len(associations))

        result = run_check(associations, config, session, deadline_seconds=_deadline_seconds(context, config))
    finally:
        # abandoned checks may still be using the session; the runtime freeze reclaims it
        if result is None or not result.abandoned:
            session.close()

    for aid, err in result.errors:
        logger.warning("FAILED %s: %s", aid, err)
    body = result.summary()
    logger.info("STEP2 %s", body)
    return {"statusCode": 200, "body": body}
