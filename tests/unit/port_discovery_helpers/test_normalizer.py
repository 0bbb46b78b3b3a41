from kilar.port_discovery_helpers.normalizer import dedupe_entries, fill_unknown_pids, pick_best, unresolved_keys
from kilar.port_models import PortProtocol
from tests.helpers.kilar_fakes import tcp, udp


def test_dedupe_collapses_same_port_protocol_pid():
    entries = [
        tcp(3000, 12345, "node", address="*"),
        tcp(3000, 12345, "node", address="::"),
        udp(3000, 12345, "node"),
        tcp(3000, 12346, "node"),
    ]

    deduped = dedupe_entries(entries)

    assert [entry.dedup_key for entry in deduped] == [
        (3000, PortProtocol.TCP, 12345),
        (3000, PortProtocol.UDP, 12345),
        (3000, PortProtocol.TCP, 12346),
    ]
    assert deduped[0].address == "*"


def test_dedupe_merges_missing_fields_from_later_duplicates():
    deduped = dedupe_entries([tcp(80, 5), tcp(80, 5, "nginx", command_line="nginx -g daemon", state="LISTEN")])

    assert len(deduped) == 1
    assert (deduped[0].process_name, deduped[0].command_line, deduped[0].state) == ("nginx", "nginx -g daemon", "LISTEN")


def test_dedupe_merges_executable_and_working_directory():
    deduped = dedupe_entries([tcp(80, 5, "nginx"), tcp(80, 5, "nginx", executable_path="/usr/sbin/nginx", working_directory="/")])

    assert (deduped[0].executable_path, deduped[0].working_directory) == ("/usr/sbin/nginx", "/")


def test_dedupe_is_idempotent():
    entries = [tcp(1, 1), tcp(1, 1), tcp(2, None), tcp(2, None)]

    once = dedupe_entries(entries)

    assert dedupe_entries(once) == once
    assert len(once) == 2


def test_pick_best_prefers_known_pid():
    assert pick_best([tcp(3000, None), tcp(3000, 7, "node")]).pid == 7
    assert pick_best([tcp(3000, None)]).pid is None
    assert pick_best([]) is None


def test_unresolved_keys_are_distinct_and_bounded():
    entries = [tcp(22), tcp(22), udp(22), tcp(80, 5), tcp(443), tcp(8443)]

    assert unresolved_keys(entries, limit=10) == [(22, PortProtocol.TCP), (22, PortProtocol.UDP), (443, PortProtocol.TCP), (8443, PortProtocol.TCP)]
    assert unresolved_keys(entries, limit=2) == [(22, PortProtocol.TCP), (22, PortProtocol.UDP)]
    assert unresolved_keys(entries, limit=0) == []


def test_fill_unknown_pids_substitutes_in_place():
    entries = [tcp(80, 5, "nginx"), tcp(22, state="LISTEN", address="*"), tcp(443)]
    resolved = {(22, PortProtocol.TCP): [tcp(22, 900, "sshd"), tcp(22, 901, "sshd")]}

    filled = fill_unknown_pids(entries, resolved)

    assert [(entry.port, entry.pid) for entry in filled] == [(80, 5), (22, 900), (22, 901), (443, None)]
    assert filled[1].state == "LISTEN"
    assert filled[1].address == "*"
