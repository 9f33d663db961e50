import sys
from pathlib import Path

import pytest

# Ensure project root is importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from broker import connection_config  # noqa: E402
from broker.exceptions import ManagementOperationError  # noqa: E402
from broker.utils.object_name import ObjectName  # noqa: E402
from killer.model import ManagedObject  # noqa: E402

DOMAIN = "org.apache.activemq"


class FakeConnection:
    """In-memory stand-in for a management connection."""

    def __init__(self, objects=(), attributes=None, failing=()):
        self.objects = list(objects)
        self.attributes = dict(attributes or {})
        self.failing = {str(name) for name in failing}
        self.queries = []
        self.reads = []
        self.invoked = []
        self.closed = False

    def query(self, pattern):
        self.queries.append(pattern)
        return list(self.objects)

    def get_attribute(self, name, attribute):
        self.reads.append((str(name), attribute))
        value = self.attributes.get(str(name))
        if isinstance(value, Exception):
            raise value
        return value

    def invoke(self, name, operation, *arguments):
        self.invoked.append((str(name), operation))
        if str(name) in self.failing:
            raise ManagementOperationError(f"cannot {operation} {name}")
        return None

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def connection_view(ip, port=51000, kind_class=connection_config.CONNECTION_VIEW_CLASS):
    name = ObjectName.parse(
        f"{DOMAIN}:type=Broker,brokerName=localhost,connector=clientConnectors,connectorName=openwire,"
        f"connectionViewType=remoteAddress,connectionName=tcp_//{ip}_{port}"
    )
    return ManagedObject.of(name, kind_class)


def connection_name(client_id):
    return ObjectName.parse(
        f"{DOMAIN}:type=Broker,brokerName=localhost,connector=clientConnectors,connectorName=openwire,"
        f"connectionViewType=clientId,connectionName={client_id}"
    )


def subscription_view(consumer_id, destination="orders.queue"):
    name = ObjectName.parse(
        f"{DOMAIN}:type=Broker,brokerName=localhost,destinationType=Queue,destinationName={destination},"
        f"endpoint=Consumer,clientId=ID_client,consumerId={consumer_id}"
    )
    return ManagedObject.of(name, connection_config.SUBSCRIPTION_VIEW_CLASS)


@pytest.fixture
def fake_connection():
    return FakeConnection


@pytest.fixture
def make_connection_view():
    return connection_view


@pytest.fixture
def make_connection_name():
    return connection_name


@pytest.fixture
def make_subscription_view():
    return subscription_view
