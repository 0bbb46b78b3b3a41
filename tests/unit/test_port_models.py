import pytest

from kilar.port_models import ListFilter, PortInfo, PortProtocol, ProtocolFilter, SortKey, validate_port_number


def test_port_info_defaults_for_unknown_owner():
    info = PortInfo(port=3000, protocol=PortProtocol.TCP)

    assert info.pid is None
    assert info.pid_known is False
    assert info.process_name == "unknown"
    assert info.command_line == ""


def test_port_info_coerces_protocol_string():
    info = PortInfo(port=53, protocol="udp", pid=900, process_name="dnsmasq")

    assert info.protocol is PortProtocol.UDP
    assert info.dedup_key == (53, PortProtocol.UDP, 900)


@pytest.mark.parametrize("port", [0, 65536, -1])
def test_port_info_rejects_out_of_range_port(port):
    with pytest.raises(ValueError):
        PortInfo(port=port, protocol=PortProtocol.TCP)


@pytest.mark.parametrize("pid", [0, -5, True])
def test_port_info_rejects_invalid_pid(pid):
    with pytest.raises(ValueError):
        PortInfo(port=80, protocol=PortProtocol.TCP, pid=pid)


def test_empty_process_name_falls_back_to_unknown():
    assert PortInfo(port=80, protocol=PortProtocol.TCP, process_name="").process_name == "unknown"


def test_with_process_keeps_existing_values_for_missing_details():
    info = PortInfo(port=80, protocol=PortProtocol.TCP, pid=10, process_name="nginx", command_line="nginx -g")

    updated = info.with_process(None, "", None)

    assert updated == info
    assert info.with_process(11, "httpd", "httpd -k").pid == 11


def test_executable_and_working_directory_default_to_none():
    info = PortInfo(port=80, protocol=PortProtocol.TCP, pid=10)

    assert (info.executable_path, info.working_directory) == (None, None)
    updated = info.with_process(None, "nginx", "", "/usr/sbin/nginx", "/var/www")
    assert (updated.executable_path, updated.working_directory) == ("/usr/sbin/nginx", "/var/www")
    assert updated.with_process(None, None, None).executable_path == "/usr/sbin/nginx"


def test_validate_port_number_rejects_non_integers():
    with pytest.raises(TypeError):
        validate_port_number("80")
    with pytest.raises(TypeError):
        validate_port_number(True)
    assert validate_port_number(65535) == 65535


def test_protocol_filter_membership():
    assert ProtocolFilter.ALL.protocols == (PortProtocol.TCP, PortProtocol.UDP)
    assert ProtocolFilter.TCP.includes(PortProtocol.TCP)
    assert not ProtocolFilter.TCP.includes(PortProtocol.UDP)
    assert ProtocolFilter.for_protocol(PortProtocol.UDP) is ProtocolFilter.UDP


def test_list_filter_defaults_and_range_validation():
    default = ListFilter()
    assert default.protocol is ProtocolFilter.ALL
    assert default.sort_by is SortKey.PORT

    with pytest.raises(ValueError, match="greater than end"):
        ListFilter(port_range=(4000, 3000))
    with pytest.raises(ValueError):
        ListFilter(port_range=(0, 10))
