"""Print the relay's retained history as a table."""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Sequence

import httpx
from pydantic import TypeAdapter

from superside.schemas import Notification, Port, ServiceStatus

DEFAULT_STATE_URL = "http://localhost:7778/api/state"

_notifications = TypeAdapter(List[Notification])


def status_label(status: int) -> str:
    try:
        return ServiceStatus(status).name.title()
    except ValueError:
        return "Unknown"


def format_ports(ports: Sequence[Port]) -> str:
    rendered = []
    for port in ports:
        if port.port is None:
            continue
        if port.service_port:
            rendered.append(f"{port.service_port}->{port.port}")
        else:
            rendered.append(str(port.port))
    return ", ".join(rendered)


def format_notification(notification: Notification) -> str:
    svc = notification.event.service
    tag = (svc.image or "").split(":")[-1]
    return (
        f"{svc.updated or '':<30} {notification.cluster_name:>15} {svc.hostname or '':>20} "
        f"{svc.name:>25} {tag} [{format_ports(svc.ports)}] "
        f"{status_label(notification.event.previous_status)} --> {status_label(svc.status)}"
    )


def render_events(notifications: Sequence[Notification]) -> str:
    lines = ["", "Events", "-" * 80]
    lines.extend(format_notification(n) for n in notifications)
    lines.append("")
    return "\n".join(lines)


def fetch_state(url: str, *, client: Optional[httpx.Client] = None) -> List[Notification]:
    if client is None:
        with httpx.Client() as owned:
            return fetch_state(url, client=owned)
    response = client.get(url)
    response.raise_for_status()
    return _notifications.validate_json(response.content)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="superside-client", description=__doc__)
    parser.add_argument("--url", default=DEFAULT_STATE_URL, help="State endpoint to read")
    args = parser.parse_args(argv)

    sys.stdout.write(render_events(fetch_state(args.url)) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
