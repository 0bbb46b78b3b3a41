import pytest

from kilar.port_models import PortProtocol, ProtocolFilter, SortKey
from kilar.validation import parse_port_range, parse_protocol, parse_protocol_filter, parse_sort_key, validate_port


def test_validate_port_accepts_int_and_string():
    assert validate_port(3000) == 3000
    assert validate_port(" 8080 ") == 8080


@pytest.mark.parametrize("value", [0, 70000, "abc", "-1", "", True])
def test_validate_port_rejects_invalid_values(value):
    with pytest.raises(ValueError, match="Invalid port number"):
        validate_port(value)


def test_parse_protocol_is_case_insensitive():
    assert parse_protocol("TCP") is PortProtocol.TCP
    assert parse_protocol_filter("All") is ProtocolFilter.ALL


def test_parse_protocol_filter_rejects_unknown():
    with pytest.raises(ValueError, match="Must be tcp, udp, or all"):
        parse_protocol_filter("sctp")
    with pytest.raises(ValueError, match="Must be tcp or udp"):
        parse_protocol("all")


def test_parse_sort_key():
    assert parse_sort_key("Name") is SortKey.NAME
    with pytest.raises(ValueError, match="Invalid sort option"):
        parse_sort_key("memory")


def test_parse_port_range_valid():
    assert parse_port_range("3000-4000") == (3000, 4000)
    assert parse_port_range("80-80") == (80, 80)


@pytest.mark.parametrize("value", ["3000", "3000-", "a-b", "1-2-3", "3000:4000"])
def test_parse_port_range_rejects_bad_format(value):
    with pytest.raises(ValueError, match="Invalid port range format"):
        parse_port_range(value)


def test_parse_port_range_rejects_reversed_range():
    with pytest.raises(ValueError, match="Start port is greater than end port"):
        parse_port_range("4000-3000")


def test_parse_port_range_rejects_out_of_bounds_port():
    with pytest.raises(ValueError, match="Invalid port number"):
        parse_port_range("0-100")
