import pytest

from superside.schemas import StateChangedEvent


@pytest.fixture()
def anyio_backend():
    return "asyncio"


def make_event(
    name: str = "web",
    *,
    cluster: str = "nitro-dev",
    status: int = 0,
    previous_status: int = 3,
    hostname: str = "awesome-host",
) -> StateChangedEvent:
    return StateChangedEvent.model_validate(
        {
            "State": {"ClusterName": cluster, "Hostname": hostname},
            "ChangeEvent": {
                "Service": {
                    "ID": f"{name}-id",
                    "Name": name,
                    "Image": f"registry/{name}:1.0",
                    "Hostname": hostname,
                    "Updated": "2015-06-09T12:00:00Z",
                    "Ports": [{"Type": "tcp", "Port": 31000, "ServicePort": 8080}],
                    "Status": status,
                },
                "PreviousStatus": previous_status,
                "Time": "2015-06-09T12:00:01Z",
            },
        }
    )


@pytest.fixture()
def event_factory():
    return make_event
