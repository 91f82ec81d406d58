"""
Unit tests for the CLI entry point.

Runs ``main`` end to end against the in-memory transport.
"""

import io
import json
import signal

import pytest

from filtered_stream import stream_cli
from filtered_stream.connectors.memory_transport import InMemoryTransport
from filtered_stream.core.connector import ApiResponse
from filtered_stream.core.exceptions import TransportError

from conftest import RecordingSleep, scripted


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch, restore_package_logger):
    for var in ("STREAM_BEARER_TOKEN", "BEARER_TOKEN", "STREAM_STOP_FILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.json").write_text(json.dumps({"BearerToken": "test-token"}))
    (tmp_path / "rules.json").write_text(json.dumps([
        {"value": "python remote", "tag": "jobs"},
    ]))
    return tmp_path


def tweet(i):
    return json.dumps({"data": {"id": str(i), "text": f"tweet {i}", "author_id": "5"}})


def stop_after_chunks(transport, workdir, count):
    seen = []

    def hook(chunk):
        seen.append(chunk)
        if len(seen) == count:
            (workdir / "stop").touch()

    transport.on_chunk_hook = hook


class TestMain:
    
    def test_streams_until_stop_file(self, workdir):
        transport = InMemoryTransport(
            rules=[{"id": "1", "value": "old", "tag": "old"}],
            sessions=[scripted(tweet(1), "\r\n", tweet(2), tweet(3))],
        )
        stop_after_chunks(transport, workdir, 3)
        stdout = io.StringIO()
        
        code = stream_cli.main([], stdout=stdout, transport=transport, sleep=RecordingSleep())
        
        assert code == stream_cli.EXIT_OK
        assert stdout.getvalue() == (
            '[\n{"id":"1","text":"tweet 1"}\n,\n{"id":"2","text":"tweet 2"}\n]'
        )
        assert sorted(r["value"] for r in transport.rules.values()) == ["old", "python remote"]
    
    def test_delete_flag_replaces_rules(self, workdir):
        transport = InMemoryTransport(
            rules=[{"id": "1", "value": "old", "tag": "old"}],
            sessions=[scripted(tweet(1))],
        )
        stop_after_chunks(transport, workdir, 1)
        
        code = stream_cli.main(["--delete"], stdout=io.StringIO(), transport=transport)
        
        assert code == stream_cli.EXIT_OK
        assert [r["value"] for r in transport.rules.values()] == ["python remote"]
    
    def test_reconnects_with_backoff(self, workdir):
        transport = InMemoryTransport(sessions=[
            scripted(tweet(1), error=TransportError("reset")),
            scripted(tweet(2)),
        ])
        stop_after_chunks(transport, workdir, 2)
        sleep = RecordingSleep()
        stdout = io.StringIO()
        
        stream_cli.main([], stdout=stdout, transport=transport, sleep=sleep)
        
        assert sleep.delays == [1]
        assert [r["id"] for r in json.loads(stdout.getvalue())] == ["1", "2"]
    
    def test_upstream_error_never_opens_stream(self, workdir):
        transport = InMemoryTransport(rules_status={"list": 403}, sessions=[scripted(tweet(1))])
        stdout = io.StringIO()
        
        code = stream_cli.main([], stdout=stdout, transport=transport)
        
        assert code == stream_cli.EXIT_UPSTREAM_ERROR
        assert transport.connections == 0
        assert stdout.getvalue() == ""
    
    def test_rules_transport_failure_is_fatal(self, workdir):
        class Unreachable(InMemoryTransport):
            def send(self, request):
                raise TransportError("connection refused")
        
        transport = Unreachable()
        
        code = stream_cli.main([], stdout=io.StringIO(), transport=transport)
        
        assert code == stream_cli.EXIT_UPSTREAM_ERROR
        assert transport.connections == 0
    
    def test_malformed_rules_listing_is_fatal(self, workdir):
        class ListBody(InMemoryTransport):
            def send(self, request):
                return ApiResponse(status_code=200, body="[1]", reason="OK")
        
        transport = ListBody()
        
        code = stream_cli.main([], stdout=io.StringIO(), transport=transport)
        
        assert code == stream_cli.EXIT_UPSTREAM_ERROR
        assert transport.connections == 0
    
    def test_missing_token_is_config_error(self, workdir):
        (workdir / "config.json").write_text("{}")
        transport = InMemoryTransport()
        
        code = stream_cli.main([], stdout=io.StringIO(), transport=transport)
        
        assert code == stream_cli.EXIT_CONFIG_ERROR
        assert transport.request_history == []
    
    def test_refuses_to_start_with_stop_file(self, workdir, capsys):
        (workdir / "stop").touch()
        transport = InMemoryTransport()
        stdout = io.StringIO()
        
        code = stream_cli.main([], stdout=stdout, transport=transport)
        
        assert code == stream_cli.EXIT_CONFIG_ERROR
        assert transport.request_history == []
        assert stdout.getvalue() == ""
        assert "Remove the stop file to continue" in capsys.readouterr().err
    
    def test_custom_stop_file(self, workdir):
        transport = InMemoryTransport(sessions=[scripted(tweet(1), tweet(2))])
        halt = workdir / "halt"
        transport.on_chunk_hook = lambda chunk: halt.touch()
        stdout = io.StringIO()
        
        code = stream_cli.main(["--stop-file", str(halt)], stdout=stdout, transport=transport)
        
        assert code == stream_cli.EXIT_OK
        assert len(json.loads(stdout.getvalue())) == 1
    
    def test_rules_only_does_not_stream(self, workdir):
        transport = InMemoryTransport(sessions=[scripted(tweet(1))])
        stdout = io.StringIO()
        
        code = stream_cli.main(["--rules-only"], stdout=stdout, transport=transport)
        
        assert code == stream_cli.EXIT_OK
        assert transport.connections == 0
        assert stdout.getvalue() == ""
        assert len(transport.rules) == 1
    
    def test_skip_rules_leaves_rules_untouched(self, workdir):
        transport = InMemoryTransport(sessions=[scripted(tweet(1))])
        stop_after_chunks(transport, workdir, 1)
        
        stream_cli.main(["--skip-rules"], stdout=io.StringIO(), transport=transport)
        
        assert transport.rules == {}
        assert all(r.method == "GET" and "rules" not in r.url for r in transport.request_history)
    
    def test_signal_handlers_restored(self, workdir):
        before = signal.getsignal(signal.SIGTERM)
        transport = InMemoryTransport(sessions=[scripted(tweet(1))])
        stop_after_chunks(transport, workdir, 1)
        
        stream_cli.main([], stdout=io.StringIO(), transport=transport)
        
        assert signal.getsignal(signal.SIGTERM) == before
    
    def test_diagnostics_stay_off_stdout(self, workdir, capsys):
        transport = InMemoryTransport(sessions=[scripted("not json", tweet(1))])
        stop_after_chunks(transport, workdir, 2)
        stdout = io.StringIO()
        
        stream_cli.main([], stdout=stdout, transport=transport)
        
        assert json.loads(stdout.getvalue()) == [{"id": "1", "text": "tweet 1"}]
        assert "unable to parse chunk" in capsys.readouterr().err
    
    def test_skip_and_rules_only_are_exclusive(self):
        with pytest.raises(SystemExit):
            stream_cli.main(["--skip-rules", "--rules-only"])
