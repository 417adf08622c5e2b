import json

from auth import load_secret
from core.config import Config, load_config
from ui.file_logger import FileLogger
from ui.log_utils import redact_url, write_cli_log, write_incoming_log


class TestLoadConfig:
    def test_creates_default(self, tmp_path):
        config_file = tmp_path / "gemini-proxy" / "config.json"

        config = load_config(config_file)

        assert config == Config()
        assert json.loads(config_file.read_text())["upstream"]["base_url"] == (
            "https://generativelanguage.googleapis.com"
        )

    def test_reads_existing(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"proxy": {"port": 9999, "debug": True}}))

        config = load_config(config_file)

        assert config.proxy.port == 9999
        assert config.proxy.debug is True
        assert config.routing.prefixes == ["/api/api-proxy/", "/api-proxy/", "/api/proxy/"]

    def test_corrupt_file_backed_up(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")

        config = load_config(config_file)

        assert config == Config()
        assert (tmp_path / "config.json.bak").read_text() == "{not json"


class TestLoadSecret:
    def test_reads_environment(self):
        assert load_secret({"GEMINI_API_KEY": " abc "}).api_key == "abc"

    def test_missing(self):
        assert not load_secret({}).is_configured

    def test_repr_is_masked(self):
        secret = load_secret({"GEMINI_API_KEY": "AIzaSyD-very-long-secret"})
        assert "very-long" not in repr(secret)


class TestLogUtils:
    def test_redact_url(self):
        url = "https://generativelanguage.googleapis.com/v1beta?alt=json&key=AIzaSyD-very-long-secret"
        redacted = redact_url(url)
        assert "very-long" not in redacted
        assert "alt=json" in redacted

    def test_redact_url_masks_secret_in_path(self):
        url = "https://example.com/v1beta/models/AIzaSyD-very-long-secret?key=AIzaSyD-very-long-secret"
        redacted = redact_url(url, "AIzaSyD-very-long-secret")
        assert "very-long" not in redacted
        assert redacted.startswith("https://example.com/v1beta/models/***?")

    def test_redact_url_without_query(self):
        assert redact_url("https://example.com/a") == "https://example.com/a"

    def test_cli_log_line(self, tmp_path):
        log_file = tmp_path / "proxy.log"
        write_cli_log("FORWARD", "POST /api-proxy/x", log_file=log_file, status=200)
        line = log_file.read_text()
        assert "FORWARD: POST /api-proxy/x status=200" in line

    def test_incoming_log_redacts(self, tmp_path):
        path = write_incoming_log(
            "POST",
            "/api-proxy/x",
            {"authorization": "Bearer some-long-token", "accept": "*/*"},
            [("key", "client-supplied-key"), ("alt", "json")],
            b'{"a": 1}',
            log_root=tmp_path,
        )

        entry = json.loads(path.read_text())
        assert "some-long" not in entry["headers"]["authorization"]
        assert entry["headers"]["accept"] == "*/*"
        assert ["alt", "json"] in entry["query"]
        assert "client-supplied-key" not in json.dumps(entry["query"])
        assert entry["body"] == '{"a": 1}'

    def test_file_logger(self, tmp_path):
        logger = FileLogger(tmp_path / "proxy.log")
        logger.log_forward("GET", "/api-proxy/x", 200, url="https://u/x", elapsed_ms=12.3)
        logger.log_error("/api-proxy/x", 500, "boom")

        text = (tmp_path / "proxy.log").read_text()
        assert "FORWARD: GET /api-proxy/x" in text
        assert "ERROR: boom" in text


class TestDashboard:
    def test_counts_and_errors(self, monkeypatch):
        from ui import dashboard as dashboard_module

        lines = []
        monkeypatch.setattr(dashboard_module, "write_cli_log", lambda level, message, **extra: lines.append(level))
        dashboard = dashboard_module.Dashboard(Config(), key_configured=False)

        dashboard.log_forward("POST", "/api-proxy/x", 200, url="https://u/x", elapsed_ms=5.0)
        dashboard.log_forward("POST", "/api-proxy/x", 429, url="https://u/x", elapsed_ms=5.0)
        dashboard.log_error("/api-proxy/x", 429, "rate limited")

        assert dashboard._request_count == {"ok": 1, "error": 1}
        assert dashboard._errors == ["/api-proxy/x 429: rate limited"]
        assert lines == ["FORWARD", "FORWARD", "ERROR"]
        assert dashboard._build_layout() is not None

    def test_local_errors_counted(self, monkeypatch):
        from ui import dashboard as dashboard_module

        monkeypatch.setattr(dashboard_module, "write_cli_log", lambda level, message, **extra: None)
        dashboard = dashboard_module.Dashboard(Config())

        # 400 Invalid path never reaches upstream, so only log_error runs
        dashboard.log_error("/api/proxy", 400, "Invalid path")

        assert dashboard._request_count == {"ok": 0, "error": 1}


def test_serverless_entry_exposes_app():
    from api.index import app

    paths = {route.path for route in app.routes}
    assert "/api-proxy/{slug:path}" in paths
    assert "/healthz" in paths
