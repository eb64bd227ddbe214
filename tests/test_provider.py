import pytest

from portpeek import datatype
from portpeek.exceptions import OSQueryError
from portpeek.process_provider import get_provider
from portpeek.process_provider.local import MockProvider


@pytest.fixture
def provider():
    return MockProvider()


def test_lookup_prefers_oldest_listener(provider):
    result = provider.lookup(80)
    assert isinstance(result, datatype.Found)
    assert [p.pid for p in result.processes] == [1234, 1235]
    assert result.owner.name == "nginx"
    assert result.owner.sockets[0].state == datatype.LISTEN


def test_lookup_prefers_listener_over_established():
    provider = MockProvider()
    # a client connected from port 8000 that started before the server
    provider.processes[4321].create_time = 1.0
    provider.sockets.append(
        datatype.SocketEntry(protocol="tcp", local_address="127.0.0.1", port=8000, state=datatype.ESTABLISHED, pid=4321)
    )
    result = provider.lookup(8000)
    assert [p.pid for p in result.processes] == [5678, 4321]


def test_lookup_groups_sockets_by_process(provider):
    result = provider.lookup(5432)
    assert len(result.processes) == 1
    assert {s.state for s in result.owner.sockets} == {datatype.LISTEN, datatype.ESTABLISHED}


def test_lookup_finds_established_only_socket(provider):
    result = provider.lookup(51234)
    assert isinstance(result, datatype.Found)
    assert result.owner.name == "psql"
    assert not result.owner.is_listening


def test_lookup_ignores_other_tcp_states(provider):
    assert provider.lookup(51235) == datatype.NotFound(51235)


def test_lookup_not_found(provider):
    assert provider.lookup(12345) == datatype.NotFound(12345)


def test_lookup_filters_by_protocol(provider):
    assert isinstance(provider.lookup(53, "udp"), datatype.Found)
    assert provider.lookup(53, "tcp") == datatype.NotFound(53)
    assert provider.lookup(80, "udp") == datatype.NotFound(80)


def test_lookup_rejects_unknown_protocol(provider):
    with pytest.raises(ValueError):
        provider.lookup(80, "sctp")


def test_hidden_owner_is_reported_as_os_error(provider):
    with pytest.raises(OSQueryError) as excinfo:
        provider.lookup(631)
    assert "sudo" in excinfo.value.hint


def test_vanished_process_is_not_found(provider):
    del provider.processes[5678]
    assert provider.lookup(8000) == datatype.NotFound(8000)


def test_get_provider_rejects_unknown_backend():
    with pytest.raises(ValueError):
        get_provider("netstat")


def test_unknown_start_time_ranks_last(provider):
    provider.processes[1234].create_time = None
    result = provider.lookup(80)
    assert [p.pid for p in result.processes] == [1235, 1234]
