import psutil
import pytest

from broker.exceptions import BrokerToolError, ProcessNotFoundError
from broker.utils import process_attach


class FakeProcess:
    cmdlines = {}

    def __init__(self, pid):
        if pid not in self.cmdlines:
            raise psutil.NoSuchProcess(pid)
        self.pid = pid

    def cmdline(self):
        value = self.cmdlines[self.pid]
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def processes(monkeypatch):
    FakeProcess.cmdlines = {}
    monkeypatch.setattr(process_attach.psutil, "Process", FakeProcess)
    return FakeProcess.cmdlines


def test_address_from_jolokia_javaagent(processes):
    processes[100] = [
        "java",
        "-Xmx1g",
        "-javaagent:/opt/activemq/lib/jolokia-jvm-1.7.2.jar=port=8161,host=0.0.0.0,agentContext=/api/jolokia",
        "-jar",
        "activemq.jar",
        "start",
    ]

    assert process_attach.locate(100) == "http://127.0.0.1:8161/api/jolokia/"


def test_javaagent_defaults(processes):
    processes[101] = ["java", "-javaagent:/opt/jolokia-agent-jvm.jar", "-jar", "activemq.jar"]

    assert process_attach.locate(101) == "http://localhost:8778/jolokia/"


def test_explicit_agent_property_wins(processes):
    processes[102] = [
        "java",
        "-Djolokia.agent=https://broker.example:9000/jolokia/",
        "-javaagent:/opt/jolokia-jvm.jar=port=8778",
    ]

    assert process_attach.locate(102) == "https://broker.example:9000/jolokia/"


def test_other_agents_are_ignored(processes):
    processes[103] = ["java", "-javaagent:/opt/jmx_prometheus_javaagent.jar=9404:config.yml", "-Dactivemq.home=/opt/amq"]

    with process_attach.attach(103) as process:
        assert process.agent_properties() == {"activemq.home": "/opt/amq"}
        assert process.management_address() is None


def test_ipv6_host_is_bracketed():
    url = process_attach.agent_url_from_options({"host": "::1", "port": "8778", "protocol": "https"})

    assert url == "https://[::1]:8778/jolokia/"


def test_missing_process(processes):
    with pytest.raises(ProcessNotFoundError) as excinfo:
        process_attach.attach(999)
    assert excinfo.value.pid == 999


def test_inaccessible_process(processes):
    processes[104] = psutil.AccessDenied(104)

    with pytest.raises(ProcessNotFoundError, match="not accessible"):
        process_attach.attach(104)


def test_detach_is_idempotent_and_final(processes):
    processes[105] = ["java"]
    process = process_attach.attach(105)

    process.detach()
    process.detach()

    assert not process.attached
    with pytest.raises(BrokerToolError):
        process.agent_properties()


def test_context_exit_detaches_on_error(processes):
    processes[106] = ["java"]

    with pytest.raises(RuntimeError):
        with process_attach.attach(106) as process:
            raise RuntimeError("boom")
    assert not process.attached
