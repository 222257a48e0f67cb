"""Tests for the command line interface."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import io
import json

import pytest

from content_policy.cli import EXIT_CONFIG, EXIT_OK, EXIT_VIOLATION, main
from content_policy.patterns import EMAIL_TOKEN, URL_TOKEN


def _run(monkeypatch, capsys, argv, stdin=""):
    monkeypatch.setattr(sys, "stdin", io.StringIO(stdin))
    code = main(argv)
    out, err = capsys.readouterr()
    return code, out, err


def test_scan(monkeypatch, capsys):
    code, out, _ = _run(monkeypatch, capsys, ["--config", "", "scan"], "mail x@y.com")
    data = json.loads(out)
    assert code == EXIT_OK
    assert data["text"] == f"mail {EMAIL_TOKEN}"
    assert data["has_violation"] is True
    assert data["categories"] == ["email"]


def test_scan_check_exit_codes(monkeypatch, capsys):
    code, _, _ = _run(monkeypatch, capsys, ["--config", "", "scan", "--check"], "x@y.com")
    assert code == EXIT_VIOLATION
    code, out, _ = _run(monkeypatch, capsys, ["--config", "", "scan", "--check"], "call me")
    assert code == EXIT_OK
    assert json.loads(out)["flagged"] is True


def test_allow_list_option(monkeypatch, capsys):
    argv = ["--config", "", "--allow-list", "example.com", "scan"]
    _, out, _ = _run(monkeypatch, capsys, argv, "www.example.com www.donezo.com")
    assert json.loads(out)["text"] == f"www.example.com {URL_TOKEN}"


def test_scan_messages(monkeypatch, capsys):
    messages = [{"role": "user", "content": "a@b.com"}, {"role": "user", "content": "hi"}]
    code, out, _ = _run(monkeypatch, capsys, ["--config", "", "scan-messages"], json.dumps(messages))
    assert code == EXIT_OK
    assert json.loads(out) == [
        {"role": "user", "content": EMAIL_TOKEN},
        {"role": "user", "content": "hi"},
    ]


def test_scan_messages_rejects_non_list(monkeypatch, capsys):
    code, _, err = _run(monkeypatch, capsys, ["--config", "", "scan-messages"], '{"a": 1}')
    assert code == EXIT_CONFIG
    assert "JSON array" in err


def test_scan_messages_non_dict_items(monkeypatch, capsys):
    code, out, _ = _run(monkeypatch, capsys, ["--config", "", "scan-messages"], '["hi", {"content": "a@b.com"}]')
    assert code == EXIT_OK
    assert json.loads(out) == ["hi", {"content": EMAIL_TOKEN}]


def test_invalid_threshold_exits_2(tmp_path, monkeypatch, capsys):
    path = tmp_path / "policy.yaml"
    path.write_text("score_threshold: high\n", encoding="utf-8")
    code, _, err = _run(monkeypatch, capsys, ["--config", str(path), "scan"], "x")
    assert code == EXIT_CONFIG
    assert "score_threshold" in err


def test_presidio_missing_exits_2(monkeypatch, capsys):
    from content_policy import presidio_layer
    monkeypatch.setattr(presidio_layer, "_recognizers", {})
    monkeypatch.setitem(sys.modules, "presidio_analyzer", None)
    monkeypatch.setitem(sys.modules, "presidio_analyzer.predefined_recognizers", None)
    code, out, err = _run(monkeypatch, capsys, ["--config", "", "--engine", "presidio", "scan"], "x")
    assert code == EXIT_CONFIG
    assert out == ""
    assert "presidio-analyzer" in err


def test_rules(monkeypatch, capsys):
    code, out, _ = _run(monkeypatch, capsys, ["--config", "", "rules"])
    data = json.loads(out)
    assert code == EXIT_OK
    assert data["allow_list"] == ["donezo.com"]
    assert [r["category"] for r in data["rules"]] == ["email", "phone", "url", "keyword"]
    assert data["rules"][-1]["redaction_token"] is None


def test_config_file(tmp_path, monkeypatch, capsys):
    path = tmp_path / "policy.yaml"
    path.write_text("enabled: false\n", encoding="utf-8")
    _, out, _ = _run(monkeypatch, capsys, ["--config", str(path), "scan"], "x@y.com")
    assert json.loads(out)["text"] == "x@y.com"


def test_bad_config_exits_2(tmp_path, monkeypatch, capsys):
    path = tmp_path / "policy.yaml"
    path.write_text("engine: neural\n", encoding="utf-8")
    code, out, err = _run(monkeypatch, capsys, ["--config", str(path), "scan"], "x")
    assert code == EXIT_CONFIG
    assert out == ""
    assert "unknown engine" in err


def test_missing_config_file(tmp_path, monkeypatch, capsys):
    code, _, _ = _run(monkeypatch, capsys, ["--config", str(tmp_path / "nope.yaml"), "rules"])
    assert code == EXIT_CONFIG


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
