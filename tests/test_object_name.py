import pytest

from broker.exceptions import ConfigurationError, MalformedObjectNameError
from broker.utils.object_name import ObjectName, build_pattern


def test_parse_connection_view_name():
    name = ObjectName.parse(
        "org.apache.activemq:type=Broker,brokerName=localhost,connectionViewType=remoteAddress,"
        "connectionName=tcp_//10.0.0.1_61616"
    )

    assert name.domain == "org.apache.activemq"
    assert name.key_property("connectionName") == "tcp_//10.0.0.1_61616"
    assert name.key_property("missing") is None
    assert not name.property_pattern


def test_parse_pattern_keeps_wildcard():
    name = ObjectName.parse("org.apache.activemq:type=Broker,endpoint=Consumer,*")

    assert name.property_pattern
    assert str(name) == "org.apache.activemq:type=Broker,endpoint=Consumer,*"


def test_quoted_value_may_contain_separators():
    name = ObjectName.parse('d:type=Broker,destinationName="a,b=c",*')

    assert name.key_property("destinationName") == '"a,b=c"'


@pytest.mark.parametrize(
    "text",
    [
        "no-domain-separator",
        ":type=Broker",
        "d:",
        "d:type",
        "d:type=",
        "d:type=a,type=b",
        'd:name="unterminated',
        "d:name=a:b",
    ],
)
def test_malformed_names_are_rejected(text):
    with pytest.raises(MalformedObjectNameError):
        ObjectName.parse(text)


def test_malformed_name_is_a_configuration_error():
    assert issubclass(MalformedObjectNameError, ConfigurationError)


def test_canonical_sorts_keys():
    name = ObjectName.parse("d:type=Broker,brokerName=b,*")

    assert name.canonical == "d:brokerName=b,type=Broker,*"


def test_list_path_escapes_slashes():
    name = ObjectName.parse("org.apache.activemq:type=Broker,connectionName=tcp_//1.2.3.4_1")

    assert name.list_path() == "org.apache.activemq/connectionName=tcp_!/!/1.2.3.4_1,type=Broker"


def test_build_pattern_inserts_value_unchanged():
    plain = build_pattern("d:destinationName={destination},*", destination="orders.queue")
    wildcard = build_pattern("d:destinationName={destination},*", destination="orders.*")

    assert plain.key_property("destinationName") == "orders.queue"
    assert str(wildcard) == "d:destinationName=orders.*,*"


@pytest.mark.parametrize("destination", ["orders,eu", "orders:eu", "a=b", '"orders"'])
def test_build_pattern_rejects_separators(destination):
    with pytest.raises(MalformedObjectNameError):
        build_pattern("d:destinationName={destination},*", destination=destination)


def test_build_pattern_rejects_blank_value():
    with pytest.raises(MalformedObjectNameError):
        build_pattern("d:destinationName={destination},*", destination="  ")
