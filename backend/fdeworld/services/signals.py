"""Hiring signals: posts that announce a hire, ingested in batches by the signal scraper."""

import logging

from fdeworld.database import Durability, Store
from fdeworld.models import HiringSignal
from fdeworld.schemas.signal import SignalIn

logger = logging.getLogger(__name__)

FEED_LIMIT = 20


def upsert_signals(store: Store, signals: list[SignalIn]) -> dict[str, int]:
    """Insert new signals and refresh known ones, matching on ``url``.

    The whole batch is one durable write. ``discovered_at`` is kept from the
    first time a post was seen.
    """
    inserted = updated = 0
    with store.write(Durability.DURABLE) as db:
        seen: dict[str, HiringSignal] = {}
        for signal in signals:
            fields = signal.model_dump()
            fields["is_target_stage"] = int(fields["is_target_stage"])

            row = seen.get(signal.url)
            if row is None:
                row = db.query(HiringSignal).filter(HiringSignal.url == signal.url).first()
            if row is None:
                row = HiringSignal(**fields)
                db.add(row)
                inserted += 1
            else:
                for key, value in fields.items():
                    setattr(row, key, value)
                updated += 1
            seen[signal.url] = row

    logger.info("Ingested %d hiring signals (%d new, %d updated)", len(signals), inserted, updated)
    return {"inserted": inserted, "updated": updated}


def signals_feed(store: Store, limit: int = FEED_LIMIT) -> list[HiringSignal]:
    """Most recently discovered signals first."""
    with store.read() as db:
        return (
            db.query(HiringSignal)
            .order_by(HiringSignal.discovered_at.desc(), HiringSignal.id.desc())
            .limit(limit)
            .all()
        )
