from unittest.mock import AsyncMock

import pytest

from port_terminator import api
from port_terminator.api import PortTerminator
from port_terminator.errors import CommandTimeoutError, InvalidPortError, InvalidProtocolError, PortWaitTimeoutError
from port_terminator.models import ProcessRecord, TerminationResult


def _record(pid, port):
    return ProcessRecord(pid=pid, name="node", port=port, protocol="tcp")


@pytest.fixture
def owners(mock_backend):
    """Port 3000 has one owner, 4000 is free, 5000 fails to resolve."""
    table = {3000: [_record(1234, 3000)], 4000: []}

    async def resolve(port, protocol):
        if port == 5000:
            raise CommandTimeoutError("lsof -i tcp:5000", 10)
        return table[port]

    mock_backend.resolver.find_processes_by_port = AsyncMock(side_effect=resolve)
    return mock_backend


def test_defaults(mock_backend):
    terminator = PortTerminator(backend=mock_backend)

    assert terminator.method == "both"
    assert terminator.timeout_ms == 30000
    assert terminator.graceful_timeout_ms == 5000
    assert not terminator.force


def test_rejects_bad_options(mock_backend):
    with pytest.raises(InvalidProtocolError):
        PortTerminator(method="icmp", backend=mock_backend)
    with pytest.raises(ValueError):
        PortTerminator(timeout_ms=-1, backend=mock_backend)


@pytest.mark.asyncio
async def test_terminate_multiple(owners):
    results = await PortTerminator(backend=owners).terminate_multiple([3000, 4000, 5000])

    assert results == {3000: True, 4000: True, 5000: False}
    owners.terminator.kill.assert_awaited_once_with(1234, False, 5000)


@pytest.mark.asyncio
async def test_terminate_reports_partial_kill_as_failure(owners):
    owners.terminator.kill.return_value = False

    assert not await PortTerminator(backend=owners).terminate(3000)


@pytest.mark.asyncio
async def test_terminate_accepts_single_port_or_list(owners):
    terminator = PortTerminator(force=True, graceful_timeout_ms=0, backend=owners)

    assert await terminator.terminate(3000)
    assert await terminator.terminate([3000, 4000])
    owners.terminator.kill.assert_awaited_with(1234, True, 0)


@pytest.mark.asyncio
async def test_terminate_validates_ports(owners):
    with pytest.raises(InvalidPortError):
        await PortTerminator(backend=owners).terminate([3000, 70000])
    owners.resolver.find_processes_by_port.assert_not_awaited()


@pytest.mark.asyncio
async def test_terminate_with_details(owners):
    results = await PortTerminator(method="tcp", backend=owners).terminate_with_details([3000, 4000, 5000])

    assert results == [
        TerminationResult(port=3000, success=True, processes=[_record(1234, 3000)]),
        TerminationResult(port=4000, success=True, processes=[]),
        TerminationResult(port=5000, success=False, processes=[], error="Command timed out after 10ms: lsof -i tcp:5000"),
    ]
    owners.resolver.find_processes_by_port.assert_any_await(3000, "tcp")


@pytest.mark.asyncio
async def test_get_processes_and_availability(owners):
    terminator = PortTerminator(method="udp", backend=owners)

    assert await terminator.get_processes("3000") == [_record(1234, 3000)]
    assert await terminator.is_port_available(4000)
    owners.resolver.is_port_available.assert_awaited_once_with(4000, "udp")


@pytest.mark.asyncio
async def test_wait_for_port_success(mock_backend):
    mock_backend.resolver.is_port_available = AsyncMock(side_effect=[False, True])

    assert await PortTerminator(backend=mock_backend).wait_for_port(3000, 1000)


@pytest.mark.asyncio
async def test_wait_for_port_times_out(mock_backend):
    mock_backend.resolver.is_port_available.return_value = False

    with pytest.raises(PortWaitTimeoutError) as excinfo:
        await PortTerminator(backend=mock_backend).wait_for_port(3000, 20)

    assert excinfo.value.port == 3000
    assert excinfo.value.timeout_ms == 20
    assert excinfo.value.code == "OPERATION_TIMEOUT"


@pytest.mark.asyncio
async def test_convenience_functions(owners):
    assert await api.kill_port(3000, backend=owners)
    assert await api.kill_ports([3000, 5000], backend=owners) == {3000: True, 5000: False}
    assert await api.get_process_on_port(3000, backend=owners) == _record(1234, 3000)
    assert await api.get_process_on_port(4000, backend=owners) is None
    assert await api.get_processes_on_port(4000, backend=owners) == []
    assert await api.is_port_available(4000, backend=owners)
    assert await api.wait_for_port(4000, 0, backend=owners)
