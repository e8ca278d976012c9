"""Tests for application settings."""

import warnings

import pytest

from app.config import Settings


def test_warns_when_project_unconfigured():
    with pytest.warns(UserWarning, match="FIREBASE_PROJECT_ID not configured"):
        Settings(_env_file=None, demo=False, firebase_project_id="CHANGE_ME")


def test_no_warning_in_demo_mode():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        Settings(_env_file=None, demo=True, firebase_project_id="CHANGE_ME")


def test_no_warning_when_configured():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        Settings(_env_file=None, demo=False, firebase_project_id="ehr-viewer-test")


def test_firebase_web_config_keys():
    config = Settings(
        _env_file=None,
        firebase_api_key="key",
        firebase_auth_domain="ehr.firebaseapp.com",
        firebase_project_id="ehr",
        firebase_storage_bucket="ehr.appspot.com",
        firebase_messaging_sender_id="123",
        firebase_app_id="1:123:web:abc",
    ).firebase_web_config()
    assert config == {
        "apiKey": "key",
        "authDomain": "ehr.firebaseapp.com",
        "projectId": "ehr",
        "storageBucket": "ehr.appspot.com",
        "messagingSenderId": "123",
        "appId": "1:123:web:abc",
    }


def test_demo_from_environment(monkeypatch):
    monkeypatch.setenv("DEMO", "1")
    monkeypatch.setenv("DISPLAY_TIMEZONE", "America/Toronto")
    loaded = Settings(_env_file=None)
    assert loaded.demo is True
    assert loaded.display_timezone == "America/Toronto"


def test_defaults():
    loaded = Settings(_env_file=None, firebase_project_id="ehr")
    assert loaded.session_idle_timeout == 3600.0
    assert loaded.cookie_secure is False
    assert loaded.display_timezone == "UTC"


def test_session_limit_from_environment(monkeypatch):
    monkeypatch.setenv("MAX_VIEWER_SESSIONS", "50")
    assert Settings(_env_file=None, firebase_project_id="ehr").max_viewer_sessions == 50
