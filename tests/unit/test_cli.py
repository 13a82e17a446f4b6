import asyncio
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest

from port_terminator import __version__, cli
from port_terminator.errors import CommandTimeoutError, UnresolvableOwnerError
from port_terminator.models import ProcessRecord


def _record(pid, port):
    return ProcessRecord(pid=pid, name="node", port=port, protocol="tcp", command="node app.js")


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    setup = MagicMock()
    monkeypatch.setattr(cli, "setup_logging", setup)
    return setup


@pytest.fixture
def backend(mock_backend):
    table = {3000: [_record(1234, 3000)]}

    async def resolve(port, protocol):
        if port == 5000:
            raise CommandTimeoutError("lsof -i tcp:5000", 10)
        return table.get(port, [])

    mock_backend.resolver.find_processes_by_port = AsyncMock(side_effect=resolve)
    return mock_backend


def test_no_ports_is_failure(backend, capsys):
    assert cli.main([], backend=backend) == 1
    assert "No ports specified" in capsys.readouterr().err


def test_terminates_ports(backend, capsys, quiet_logging):
    assert cli.main(["3000", "3001"], backend=backend) == 0

    out = capsys.readouterr().out
    assert "Successfully terminated 1 process(es) on 2/2 port(s)" in out
    assert "PID 1234: node (tcp)" in out
    backend.terminator.kill.assert_awaited_once_with(1234, False, 5000)
    quiet_logging.assert_called_once_with(verbose=False, silent=False)


def test_failed_port_sets_exit_status(backend, capsys):
    assert cli.main(["3000", "5000"], backend=backend) == 1

    err = capsys.readouterr().err
    assert "on 1/2 port(s)" in err
    assert "Port 5000: Command timed out" in err


def test_options_reach_terminator(backend):
    assert cli.main(["3000", "-f", "-g", "0", "-m", "TCP"], backend=backend) == 0

    backend.resolver.find_processes_by_port.assert_any_await(3000, "tcp")
    backend.terminator.kill.assert_awaited_once_with(1234, True, 0)


def test_range_is_merged_deduplicated_and_sorted(backend):
    assert cli.main(["3002", "--range", "3000-3002"], backend=backend) == 0

    probed = [call.args[0] for call in backend.resolver.find_processes_by_port.await_args_list]
    assert sorted(set(probed)) == [3000, 3001, 3002]


def test_dry_run_does_not_kill(backend, capsys):
    assert cli.main(["3000", "3001", "--dry-run"], backend=backend) == 0

    out = capsys.readouterr().out
    assert "Dry run: Would terminate 1 process(es) on 2 port(s)" in out
    assert "Command: node app.js" in out
    backend.terminator.kill.assert_not_awaited()


def test_dry_run_reports_failed_lookup(backend, capsys):
    assert cli.main(["3000", "5000", "--dry-run"], backend=backend) == 1

    err = capsys.readouterr().err
    assert "Would terminate 1 process(es) on 2 port(s)" in err
    assert "Port 5000:\n  - Error: Command timed out" in err
    backend.terminator.kill.assert_not_awaited()


def test_dry_run_reports_unresolvable_owner(backend, capsys):
    backend.resolver.find_processes_by_port = AsyncMock(side_effect=UnresolvableOwnerError.for_port(3000, "netstat -an -p tcp"))

    assert cli.main(["3000", "-n", "-j"], backend=backend) == 1

    payload = orjson.loads(capsys.readouterr().out)
    assert payload["success"] is False
    assert payload["data"]["ports"][0]["processes"] == []
    assert "could not be determined" in payload["data"]["ports"][0]["error"]


def test_timeout_bounds_the_whole_run(backend, capsys):
    async def slow(port, protocol):
        await asyncio.sleep(5)
        return []

    backend.resolver.find_processes_by_port = AsyncMock(side_effect=slow)

    assert cli.main(["3000", "--timeout", "20"], backend=backend) == 1
    assert "Operation timed out after 20ms" in capsys.readouterr().err


def test_json_output(backend, capsys):
    assert cli.main(["3000", "--json"], backend=backend) == 0

    payload = orjson.loads(capsys.readouterr().out)
    assert payload["success"] is True
    assert payload["data"]["summary"] == {"total_ports": 1, "successful_ports": 1, "total_processes_killed": 1}
    assert payload["data"]["results"][0]["processes"][0]["pid"] == 1234


def test_dry_run_json_output(backend, capsys):
    assert cli.main(["3000", "-n", "-j"], backend=backend) == 0

    payload = orjson.loads(capsys.readouterr().out)
    assert payload["data"]["dry_run"] is True
    assert payload["data"]["total_processes"] == 1


def test_silent_suppresses_success_message(backend, capsys, quiet_logging):
    assert cli.main(["3000", "--silent"], backend=backend) == 0

    assert capsys.readouterr().out == ""
    quiet_logging.assert_called_once_with(verbose=False, silent=True)


@pytest.mark.parametrize("argv", [["70000"], ["abc"], ["--range", "3005-3000"], ["--timeout", "-5", "3000"], ["--bogus"]])
def test_argument_errors_exit_one(argv, backend, capsys):
    assert cli.main(argv, backend=backend) == 1
    assert "Error:" in capsys.readouterr().err


def test_version(capsys):
    assert cli.main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_help(capsys):
    assert cli.main(["--help"]) == 0
    assert "port-terminator" in capsys.readouterr().out


def test_default_method_comes_from_environment(backend, monkeypatch):
    monkeypatch.setenv("PORT_TERMINATOR_PROTOCOL", "udp")

    assert cli.main(["3000"], backend=backend) == 0
    backend.resolver.find_processes_by_port.assert_any_await(3000, "udp")
