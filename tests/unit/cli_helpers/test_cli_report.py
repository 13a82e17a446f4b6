import orjson

from port_terminator.cli_helpers.report import CliResult, PortListing, dry_run_result, render_json, termination_result
from port_terminator.models import ProcessRecord, TerminationResult

NODE = ProcessRecord(pid=1234, name="node", port=3000, protocol="tcp", command="node app.js")


def test_dry_run_text_lists_only_busy_ports():
    result = dry_run_result([PortListing(3000, [NODE]), PortListing(3001, [])], as_json=False)

    assert result.success
    assert result.message == (
        "Dry run: Would terminate 1 process(es) on 2 port(s)\n"
        "\n"
        "Port 3000:\n"
        "  - PID 1234: node (tcp)\n"
        "    Command: node app.js"
    )


def test_termination_text_lists_failures_and_kills():
    results = [
        TerminationResult(port=3000, success=True, processes=[NODE]),
        TerminationResult(port=4000, success=False, processes=[], error="Permission denied"),
        TerminationResult(port=5000, success=False, processes=[]),
    ]

    result = termination_result(results, as_json=False, silent=False)

    assert not result.success
    assert result.message == (
        "Successfully terminated 1 process(es) on 1/3 port(s)\n"
        "\n"
        "Failed ports:\n"
        "  - Port 4000: Permission denied\n"
        "  - Port 5000: Unknown error\n"
        "\n"
        "Terminated processes:\n"
        "\n"
        "Port 3000:\n"
        "  - PID 1234: node (tcp)"
    )


def test_termination_text_silent_omits_process_list():
    result = termination_result([TerminationResult(port=3000, success=True, processes=[NODE])], as_json=False, silent=True)

    assert result.message == "Successfully terminated 1 process(es) on 1/1 port(s)"


def test_render_json_includes_only_present_fields():
    assert orjson.loads(render_json(CliResult(success=False, message="boom"))) == {"success": False, "message": "boom"}

    data = termination_result([TerminationResult(port=3000, success=True, processes=[NODE])], as_json=True, silent=False)
    payload = orjson.loads(render_json(data))

    assert payload["data"]["results"] == [
        {
            "port": 3000,
            "success": True,
            "processes": [
                {"pid": 1234, "name": "node", "port": 3000, "protocol": "tcp", "command": "node app.js", "user": None}
            ],
            "error": None,
        }
    ]


def test_render_json_is_indented():
    assert render_json(CliResult(success=True, data={"a": 1})).startswith('{\n  "success": true')


def test_dry_run_lists_failed_lookup_and_fails():
    result = dry_run_result([PortListing(3000, [NODE]), PortListing(3001, [], error="Port 3001 is in use")], as_json=False)

    assert not result.success
    assert result.message.endswith("Port 3001:\n  - Error: Port 3001 is in use")
