import pytest

from port_terminator.errors import CommandNonZeroExitError
from port_terminator.platforms.windows import (
    NetstatEntry,
    WindowsPortResolver,
    parse_command_line,
    parse_netstat_ano,
    parse_tasklist_csv,
)
from tests.helpers.fake_runner import Reply

NETSTAT_ANO = """\

Active Connections

  Proto  Local Address          Foreign Address        State           PID
  TCP    0.0.0.0:3000           0.0.0.0:0              LISTENING       1234
  TCP    [::]:3000              [::]:0                 LISTENING       1234
  TCP    127.0.0.1:3000         127.0.0.1:52100        ESTABLISHED     7777
  TCP    0.0.0.0:3000           0.0.0.0:0              LISTENING       5678
  TCP    0.0.0.0:30000          0.0.0.0:0              LISTENING       4444
  UDP    0.0.0.0:3000           *:*                                    9999
"""

TASKLIST_1234 = '"node.exe","1234","Console","1","45,000 K"\n'
TASKLIST_NO_MATCH = "INFO: No tasks are running which match the specified criteria.\n"


def test_parse_netstat_ano_tcp_listeners_and_udp():
    assert parse_netstat_ano(NETSTAT_ANO, 3000, "both") == [
        NetstatEntry("tcp", 3000, 1234),
        NetstatEntry("tcp", 3000, 1234),
        NetstatEntry("tcp", 3000, 5678),
        NetstatEntry("udp", 3000, 9999),
    ]


def test_parse_netstat_ano_filters_protocol():
    assert [entry.pid for entry in parse_netstat_ano(NETSTAT_ANO, 3000, "udp")] == [9999]


def test_parse_tasklist_csv_skips_info_lines():
    assert parse_tasklist_csv(TASKLIST_NO_MATCH) == []
    assert parse_tasklist_csv(TASKLIST_1234) == [["node.exe", "1234", "Console", "1", "45,000 K"]]


def test_parse_command_line():
    assert parse_command_line("\r\n\r\nCommandLine=node server.js\r\n") == "node server.js"
    assert parse_command_line("CommandLine=\r\n") is None
    assert parse_command_line("") is None


@pytest.mark.asyncio
async def test_listing_failure_drops_only_that_process(fake_runner):
    fake_runner.on(
        "netstat",
        ["-ano"],
        Reply(
            stdout=(
                "  TCP    0.0.0.0:3000   0.0.0.0:0   LISTENING   1234\n"
                "  TCP    0.0.0.0:3000   0.0.0.0:0   LISTENING   5678\n"
            )
        ),
    )
    fake_runner.on("tasklist", ["/FI", "PID eq 1234"], Reply(stdout=TASKLIST_1234))
    fake_runner.on("tasklist", ["/FI", "PID eq 5678"], Reply(stderr="ERROR: access", exit_code=1))
    fake_runner.on("wmic", [], Reply(stdout="CommandLine=node server.js\r\n"))

    records = await WindowsPortResolver(fake_runner).find_processes_by_port(3000)

    assert len(records) == 1
    assert (records[0].pid, records[0].name, records[0].protocol) == (1234, "node.exe", "tcp")
    assert records[0].command == "node server.js"


@pytest.mark.asyncio
async def test_unparseable_listing_gives_unknown_name(fake_runner):
    fake_runner.on("netstat", ["-ano"], Reply(stdout=NETSTAT_ANO))
    fake_runner.on("tasklist", [], Reply(stdout=TASKLIST_NO_MATCH))
    fake_runner.on("wmic", [], Reply(exit_code=1))

    records = await WindowsPortResolver(fake_runner).find_processes_by_port(3000, "udp")

    assert [(record.pid, record.name, record.command) for record in records] == [(9999, "Unknown", None)]


@pytest.mark.asyncio
async def test_resolver_deduplicates_dual_stack_rows(fake_runner):
    fake_runner.on("netstat", ["-ano"], Reply(stdout=NETSTAT_ANO))
    fake_runner.on("tasklist", [], Reply(stdout=TASKLIST_1234))

    records = await WindowsPortResolver(fake_runner).find_processes_by_port(3000, "tcp")

    assert [record.pid for record in records] == [1234, 5678]
    assert fake_runner.count('tasklist /FI PID eq 1234 /FO CSV /NH') == 1


@pytest.mark.asyncio
async def test_netstat_failure_propagates(fake_runner):
    fake_runner.on("netstat", ["-ano"], Reply(stderr="boom", exit_code=1))

    with pytest.raises(CommandNonZeroExitError):
        await WindowsPortResolver(fake_runner).find_processes_by_port(3000)
