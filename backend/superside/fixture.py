"""Replay a recorded list of notifications against a relay's /update endpoint."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional, Sequence

import httpx

from superside.logging_setup import configure_logging, log_event

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_URL = "http://localhost:7778/api/update"


def build_update(notification: Dict[str, Any], *, cluster_name: str, hostname: str) -> Dict[str, Any]:
    event = notification["Event"]
    return {
        "State": {
            "ClusterName": cluster_name,
            "Hostname": hostname,
        },
        "ChangeEvent": {
            "Service": event["Service"],
            "PreviousStatus": event["PreviousStatus"],
            "Time": event.get("Time"),
        },
    }


def post_fixture(
    fixture_path: str,
    url: str,
    *,
    cluster_name: str = "nitro-dev",
    hostname: str = "awesome-host",
    client: Optional[httpx.Client] = None,
) -> int:
    """POST every notification in the fixture, in order. Returns the count sent."""
    if client is None:
        with httpx.Client() as owned:
            return post_fixture(
                fixture_path, url, cluster_name=cluster_name, hostname=hostname, client=owned
            )

    with open(fixture_path, "r", encoding="utf-8") as f:
        notifications = json.load(f)

    for notification in notifications:
        body = build_update(notification, cluster_name=cluster_name, hostname=hostname)
        response = client.post(url, json=body)
        response.raise_for_status()

    log_event(
        logger,
        "fixture posted",
        plane="data",
        extra={"url": url, "count": len(notifications)},
    )
    return len(notifications)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="superside-fixture", description=__doc__)
    parser.add_argument("--url", default=DEFAULT_UPDATE_URL, help="The URL to post updates to")
    parser.add_argument("--fixture", required=True, help="The fixture to post")
    parser.add_argument("--cluster", default="nitro-dev", help="ClusterName to report")
    parser.add_argument("--hostname", default="awesome-host", help="Hostname to report")
    args = parser.parse_args(argv)

    configure_logging()
    post_fixture(args.fixture, args.url, cluster_name=args.cluster, hostname=args.hostname)
    return 0


if __name__ == "__main__":
    sys.exit(main())
