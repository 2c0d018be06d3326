from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
import respx
from httpx import Response

import domcheck.cli as cli
from domcheck.errors import ExitCode

_BATCH = "3\ngdz.ru\nabc.gdz.ru\nmaps.me\n4\ngdz.ru\nfreegdz.ru\nabc.gdz.ru\nalex.maps.me\n"


def _stdin(monkeypatch: pytest.MonkeyPatch, text: str) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(text))


def test_check_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _stdin(monkeypatch, _BATCH)
    exit_code = cli.main(["check"])
    assert exit_code == ExitCode.OK
    assert capsys.readouterr().out == "Bad\nGood\nBad\nBad\n"


def test_check_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "batch.txt"
    path.write_text("2\ngdz.ru\nmaps.me\n3\ngdz.com\nmaps.com\nalex.maps.me\n", encoding="utf-8")
    exit_code = cli.main(["check", str(path)])
    assert exit_code == ExitCode.OK
    assert capsys.readouterr().out.splitlines() == ["Good", "Good", "Bad"]


def test_check_json_envelope(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _stdin(monkeypatch, _BATCH)
    exit_code = cli.main(["--json", "check"])
    assert exit_code == ExitCode.OK

    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is True
    assert payload["command"] == "check"
    assert payload["version"] == "0.1.0"
    assert payload["error"] is None
    data = payload["data"]
    assert data["blocked"] == 3
    assert data["minimal"] == ["maps.me", "gdz.ru"]
    assert [v["verdict"] for v in data["verdicts"]] == ["Bad", "Good", "Bad", "Bad"]
    assert data["verdicts"][2]["blocked_by"] == "gdz.ru"
    assert data["verdicts"][1]["blocked_by"] is None


def test_check_malformed_input(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _stdin(monkeypatch, "1\ngdz..ru\n0\n")
    exit_code = cli.main(["check"])
    assert exit_code == ExitCode.INVALID_USAGE
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "error: malformed domain 'gdz..ru'" in captured.err


def test_check_error_envelope(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _stdin(monkeypatch, "2\ngdz.ru\n")
    exit_code = cli.main(["check", "--json"])
    assert exit_code == ExitCode.INVALID_USAGE

    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is False
    assert payload["error"]["code"] == "unexpected_eof"
    assert payload["data"] == {}


def test_check_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["check", str(tmp_path / "nope.txt")])
    assert exit_code == ExitCode.NOT_FOUND
    assert "input file not found" in capsys.readouterr().err


def test_query_inline_blocklist(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(
        ["query", "alex.maps.me", "gdz.com", "maps.me", "-d", "gdz.ru", "-d", "maps.me"]
    )
    assert exit_code == ExitCode.OK
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Bad  alex.maps.me (blocked by maps.me)"
    assert lines[1] == "Good gdz.com"
    assert lines[2] == "Bad  maps.me"
    assert lines[3] == "2 bad, 1 good (2 blocked roots)"


def test_query_plain(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--plain", "query", "a.gdz.ru", "freegdz.ru", "-d", "gdz.ru"])
    assert exit_code == ExitCode.OK
    assert capsys.readouterr().out == "Bad\nGood\n"


def test_query_blocklist_file_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "hosts"
    path.write_text("# hosts\n0.0.0.0 ads.example.net\n0.0.0.0 x.ads.example.net\n", "utf-8")
    exit_code = cli.main(["query", "t.ads.example.net", "-b", str(path), "--pretty"])
    assert exit_code == ExitCode.OK

    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is True
    assert payload["meta"]["sources"] == [str(path)]
    assert payload["meta"]["cache"] is None
    assert payload["data"]["blocklist"] == {"input_count": 2, "minimal_count": 1, "dropped": 1}
    result = payload["data"]["results"][0]
    assert result == {
        "domain": "t.ads.example.net",
        "verdict": "Bad",
        "forbidden": True,
        "blocked_by": "ads.example.net",
    }


def test_query_blocklist_stdin(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _stdin(monkeypatch, "gdz.ru\n")
    exit_code = cli.main(["--plain", "query", "www.gdz.ru", "-b", "-"])
    assert exit_code == ExitCode.OK
    assert capsys.readouterr().out == "Bad\n"


def test_query_blocklist_url(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    url = "https://lists.example.com/block.txt"
    argv = ["--cache-dir", str(tmp_path), "--json", "query", "m.maps.me", "-b", url]
    with respx.mock:
        respx.get(url).mock(return_value=Response(200, text="maps.me\n"))
        assert cli.main(argv) == ExitCode.OK
        first = json.loads(capsys.readouterr().out)
        assert cli.main(argv) == ExitCode.OK
        second = json.loads(capsys.readouterr().out)

    assert first["data"]["results"][0]["verdict"] == "Bad"
    assert first["meta"]["cache"] == {"lookups": 1, "hits": 0}
    assert second["meta"]["cache"] == {"lookups": 1, "hits": 1}


def test_query_fail_on_bad(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["query", "gdz.com", "-d", "gdz.ru", "--fail-on-bad"])
    assert exit_code == ExitCode.OK
    capsys.readouterr()

    exit_code = cli.main(["query", "a.gdz.ru", "-d", "gdz.ru", "--fail-on-bad", "--json"])
    assert exit_code == ExitCode.FORBIDDEN
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is False
    assert payload["error"]["code"] == "forbidden"
    assert payload["data"]["results"][0]["verdict"] == "Bad"


def test_query_requires_blocklist(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["query", "gdz.ru"])
    assert exit_code == ExitCode.INVALID_USAGE
    assert "no block-list given" in capsys.readouterr().err


def test_query_malformed_domain(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["query", "ok.ru", "bad.", "-d", "gdz.ru", "--verbose"])
    assert exit_code == ExitCode.INVALID_USAGE
    err = capsys.readouterr().err
    assert "malformed domain 'bad.' (query, position 2)" in err
    assert "details:" in err


def test_query_invalid_cache_ttl(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(
        [
            "--cache-dir",
            str(tmp_path),
            "--cache-ttl",
            "bogus",
            "query",
            "gdz.ru",
            "-b",
            "https://lists.example.com/block.txt",
        ]
    )
    assert exit_code == ExitCode.INVALID_USAGE
    assert "invalid duration" in capsys.readouterr().err


def test_prune_plain(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "list.txt"
    path.write_text("abc.gdz.ru\ngdz.ru\nmaps.me\ngdz.ru\n", encoding="utf-8")
    exit_code = cli.main(["--plain", "prune", "-b", str(path), "-d", "x.maps.me"])
    assert exit_code == ExitCode.OK
    captured = capsys.readouterr()
    assert captured.out == "maps.me\ngdz.ru\n"
    assert captured.err == ""


def test_prune_text_summary_on_stderr(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "empty.txt"
    path.write_text("# nothing here\n", encoding="utf-8")
    exit_code = cli.main(["prune", "-b", str(path)])
    assert exit_code == ExitCode.OK
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "0 of 0 entries kept" in captured.err
    assert "warning: block-list is empty" in captured.err


def test_prune_json(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["prune", "-d", "gdz.ru", "-d", "abc.gdz.ru", "-d", "maps.me", "--json"])
    assert exit_code == ExitCode.OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["command"] == "prune"
    assert payload["data"] == {
        "domains": ["maps.me", "gdz.ru"],
        "input_count": 3,
        "minimal_count": 2,
        "dropped": 1,
    }


def test_prune_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["prune", "-b", str(tmp_path / "missing.txt"), "--json"])
    assert exit_code == ExitCode.NOT_FOUND
    payload = json.loads(capsys.readouterr().out)
    assert payload["error"]["code"] == "not_found"


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.strip() == "0.1.0"


def test_query_hosts_alias_is_blocked(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "hosts"
    path.write_text("0.0.0.0 ads.example trackers.example\n", encoding="utf-8")
    argv = ["--plain", "query", "x.trackers.example", "ads.example", "-b", str(path)]
    exit_code = cli.main(argv)
    assert exit_code == ExitCode.OK
    assert capsys.readouterr().out == "Bad\nBad\n"


def test_query_no_cache_leaves_no_files(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    url = "https://lists.example.com/block.txt"
    argv = ["--cache-dir", str(tmp_path), "--no-cache", "--plain", "query", "maps.me", "-b", url]
    with respx.mock:
        route = respx.get(url).mock(return_value=Response(200, text="maps.me\n"))
        assert cli.main(argv) == ExitCode.OK
        assert cli.main(argv) == ExitCode.OK
        assert route.call_count == 2

    assert capsys.readouterr().out == "Bad\nBad\n"
    assert [p for p in tmp_path.rglob("*") if p.is_file()] == []
