from __future__ import annotations

import pytest

from udpbarrier import hosts
from udpbarrier.hosts import StartupError, build_directory, read_hosts, resolve, split_entry


def write(tmp_path, text):
    p = tmp_path / "hosts"
    p.write_text(text)
    return str(p)


def test_read_skips_blanks_comments_and_duplicates(tmp_path):
    path = write(tmp_path, "  alpha \n\n# comment\nbeta\nalpha\ngamma:9000\n")
    assert read_hosts(path) == ["alpha", "beta", "gamma:9000"]


def test_read_caps_at_max_hosts(tmp_path, caplog):
    path = write(tmp_path, "".join(f"h{i}\n" for i in range(15)))
    entries = read_hosts(path, max_hosts=10)
    assert entries == [f"h{i}" for i in range(10)]
    assert "maximum number of hosts" in caplog.text


def test_missing_file_is_fatal(tmp_path):
    with pytest.raises(StartupError):
        read_hosts(str(tmp_path / "nope"))


def test_split_entry():
    assert split_entry("alpha", 8888) == ("alpha", 8888)
    assert split_entry("alpha:9000", 8888) == ("alpha", 9000)
    for bad in ("alpha:", ":9000", "alpha:x", "alpha:70000"):
        with pytest.raises(StartupError):
            split_entry(bad, 8888)


def test_resolve_numeric_address():
    assert resolve("127.0.0.1", 8888) == ("127.0.0.1", 8888)


def test_resolve_failure_is_fatal():
    with pytest.raises(StartupError):
        resolve("no-such-host.invalid", 8888)


def test_build_directory_finds_self():
    entries = ["127.0.0.1:9001", "127.0.0.1:9002", "127.0.0.1:9003"]
    d = build_directory(entries, 8888, hostname="127.0.0.1:9002")
    assert d.self_index == 1
    assert d.me.address == ("127.0.0.1", 9002)
    assert [p.hostname for p in d.remote()] == ["127.0.0.1:9001", "127.0.0.1:9003"]


def test_build_directory_matches_host_part():
    d = build_directory(["127.0.0.2", "127.0.0.1:7000"], 8888, hostname="127.0.0.1")
    assert d.self_index == 1


def test_self_must_be_listed():
    with pytest.raises(StartupError, match="not found"):
        build_directory(["127.0.0.1"], 8888, hostname="elsewhere")


def test_aliases_of_one_address_are_dropped(monkeypatch, caplog):
    table = {"me": ("10.0.0.1", 8888), "self-alias": ("10.0.0.1", 8888), "b": ("10.0.0.2", 8888), "b-alias": ("10.0.0.2", 8888)}
    monkeypatch.setattr(hosts, "resolve", lambda host, port: table[host])

    d = build_directory(["self-alias", "b", "me", "b-alias"], 8888, hostname="me")

    assert d.me.hostname == "me"
    assert [p.hostname for p in d.remote()] == ["b"]
    assert d.lookup_by_sender(("10.0.0.1", 8888)) is None
    assert caplog.text.count("already listed") == 2
