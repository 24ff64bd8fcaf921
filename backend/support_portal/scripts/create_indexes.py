from __future__ import annotations

import argparse
import json
import time
from typing import Any, Sequence

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from support_portal.core.config import Settings
from support_portal.infrastructure.logging import get_logger, setup_logging
from support_portal.infrastructure.mongo_indexes import MONGO_INDEX_SPECS, ensure_mongo_indexes

logger = get_logger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create the profile, ticket, order and question indexes the support portal relies on."
    )
    parser.add_argument("--mongo-uri", help="Connection URI; MONGODB_URI is used when omitted.")
    parser.add_argument("--database", help="Database to index instead of the one named in the URI.")
    parser.add_argument("--retries", type=int, default=12, help="Ping attempts while Mongo starts up.")
    parser.add_argument("--retry-delay", type=float, default=2.0, help="Seconds between ping attempts.")
    parser.add_argument("--timeout-ms", type=int, default=2500, help="Server selection timeout per attempt.")
    parser.add_argument("--dry-run", action="store_true", help="Print the planned indexes without connecting.")
    return parser


def planned_indexes() -> dict[str, list[str]]:
    return {
        collection: [str(options["name"]) for _keys, options in specs]
        for collection, specs in MONGO_INDEX_SPECS.items()
    }


def _connect(*, uri: str, retries: int, retry_delay: float, timeout_ms: int) -> MongoClient:
    attempts = max(1, retries)
    attempt = 0
    while True:
        attempt += 1
        client: MongoClient = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
        try:
            client.admin.command("ping")
            return client
        except PyMongoError as exc:
            client.close()
            logger.warning("mongo.ping_failed", attempt=attempt, attempts=attempts, error=str(exc))
            if attempt >= attempts:
                raise RuntimeError(f"Mongo unreachable after {attempts} attempts: {exc}") from exc
        time.sleep(max(0.0, retry_delay))


def run(*, mongo_uri: str | None, database: str | None, retries: int, retry_delay: float, timeout_ms: int) -> dict[str, Any]:
    client = _connect(
        uri=mongo_uri or Settings.from_env().mongodb_uri,
        retries=retries,
        retry_delay=retry_delay,
        timeout_ms=timeout_ms,
    )
    try:
        created = ensure_mongo_indexes(client=client, database_name=database)
    finally:
        client.close()
    logger.info("mongo.indexes_ensured", collections=len(created))
    return {"database": database or "from-uri", "collections": len(created), "indexes": created}


def main(argv: Sequence[str] | None = None) -> int:
    setup_logging()
    args = _parser().parse_args(argv)
    if args.dry_run:
        summary: dict[str, Any] = {"dryRun": True, "indexes": planned_indexes()}
    else:
        summary = run(
            mongo_uri=args.mongo_uri,
            database=args.database,
            retries=args.retries,
            retry_delay=args.retry_delay,
            timeout_ms=args.timeout_ms,
        )
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
