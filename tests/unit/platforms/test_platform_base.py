import pytest

from port_terminator.platforms.base import protocols_for, transport_of


@pytest.mark.parametrize(("column", "expected"), [("tcp", "tcp"), ("tcp6", "tcp"), ("TCP", "tcp"), ("udp4", "udp"), ("UDP", "udp"), ("unix", None)])
def test_transport_of(column, expected):
    assert transport_of(column) == expected


def test_protocols_for():
    assert protocols_for("both") == ["tcp", "udp"]
    assert protocols_for("udp") == ["udp"]
