from __future__ import annotations

import pytest

from apps.common.settings import load_settings

ENV_KEYS = (
    "DOCVERIFY_CONFIG_PATH",
    "DOCVERIFY_ROSTER_PATH",
    "DOCVERIFY_OCR_LANG",
    "DOCVERIFY_MAX_CONCURRENCY",
    "DOCVERIFY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for k in ENV_KEYS:
        monkeypatch.delenv(k, raising=False)


def test_load_from_yaml(tmp_path):
    cfg = tmp_path / "app.yaml"
    cfg.write_text("roster_path: roster.yaml\nocr_lang: fr\nmax_concurrency: 2\nlog_level: debug\n", encoding="utf-8")
    s = load_settings(str(cfg))
    assert s.roster_path.name == "roster.yaml"
    assert s.ocr_lang == "fr"
    assert s.max_concurrency == 2
    assert s.log_level == "DEBUG"
    assert s.similarity_threshold == 0.6
    assert s.max_suggestions == 3


def test_env_overrides_yaml(tmp_path, monkeypatch):
    cfg = tmp_path / "app.yaml"
    cfg.write_text("roster_path: roster.yaml\nmax_concurrency: 2\n", encoding="utf-8")
    monkeypatch.setenv("DOCVERIFY_CONFIG_PATH", str(cfg))
    monkeypatch.setenv("DOCVERIFY_ROSTER_PATH", str(tmp_path / "other.yaml"))
    monkeypatch.setenv("DOCVERIFY_MAX_CONCURRENCY", "8")
    s = load_settings()
    assert s.roster_path == (tmp_path / "other.yaml").resolve()
    assert s.max_concurrency == 8


def test_missing_roster_path(tmp_path):
    with pytest.raises(ValueError, match="roster_path"):
        load_settings(str(tmp_path / "does-not-exist.yaml"))


def test_bad_concurrency(tmp_path, monkeypatch):
    monkeypatch.setenv("DOCVERIFY_ROSTER_PATH", "r.yaml")
    monkeypatch.setenv("DOCVERIFY_MAX_CONCURRENCY", "zero")
    with pytest.raises(ValueError, match="max_concurrency"):
        load_settings(str(tmp_path / "none.yaml"))
