"""Tests for configuration loading."""

from processprobe.config import IntegrationContext, load_config


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
remote:
  backend: http
  base_url: https://fn.example/v1
cleanup:
  continue_cleanup_on_failure: false
  delete_delay_ms: 0
context:
  hubspot_portal_id: "999"
  slack_workspace: acme
max_paths: 10
"""
    )
    monkeypatch.setenv("PROCESSPROBE_CONFIG", str(config_path))
    monkeypatch.delenv("PROCESSPROBE_FUNCTIONS_URL", raising=False)
    monkeypatch.delenv("PROCESSPROBE_API_KEY", raising=False)
    monkeypatch.delenv("PROCESSPROBE_ORG_ID", raising=False)

    config = load_config()
    assert config.remote.backend == "http"
    assert config.remote.base_url == "https://fn.example/v1"
    assert config.cleanup.continue_cleanup_on_failure is False
    assert config.cleanup.auto_cleanup is True
    assert config.context.hubspot_portal_id == "999"
    assert config.max_paths == 10


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("PROCESSPROBE_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("PROCESSPROBE_FUNCTIONS_URL", "https://env.example")
    monkeypatch.setenv("PROCESSPROBE_API_KEY", "key-1")
    monkeypatch.setenv("PROCESSPROBE_ORG_ID", "org-env")

    config = load_config()
    assert config.remote.backend == "simulated"
    assert config.remote.base_url == "https://env.example"
    assert config.remote.api_key == "key-1"
    assert config.context.org_id == "org-env"
    assert config.cleanup.delete_delay_ms == 250


def test_defaults_are_not_shared(tmp_path, monkeypatch):
    monkeypatch.setenv("PROCESSPROBE_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("PROCESSPROBE_ORG_ID", "org-a")
    first = load_config()
    monkeypatch.delenv("PROCESSPROBE_ORG_ID")

    assert load_config().context.org_id is None
    assert first.context.org_id == "org-a"


def test_context_merge_ignores_empty_values():
    context = IntegrationContext(org_id="org-1", slack_channel="C1")

    merged = context.merged(slack_channel="C2", hubspot_portal_id=None)
    assert merged.slack_channel == "C2"
    assert merged.org_id == "org-1"
    assert context.slack_channel == "C1"
