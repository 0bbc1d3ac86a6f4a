from datetime import datetime, timezone
import pytest
from appointment_booking.config import load_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    for name in ("BOOKING_API_BASE_URL", "BOOKING_API_TIMEOUT", "BOOKING_TIMEZONE", "BOOKING_HORIZON_DAYS", "CONSULTATION_FEE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()
    assert settings.api_base_url == "http://localhost:5000/api"
    assert settings.api_timeout == 15.0
    assert settings.horizon_days == 30
    assert settings.consultation_fee == 500
    # no zone configured: the host clock's offset
    assert settings.tz == datetime.now().astimezone().tzinfo


def test_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("BOOKING_API_BASE_URL", "https://api.clinic.example/v1/")
    monkeypatch.setenv("BOOKING_API_TIMEOUT", "2.5")
    monkeypatch.setenv("BOOKING_HORIZON_DAYS", "14")
    monkeypatch.setenv("CONSULTATION_FEE", "650")

    settings = load_settings()
    # trailing slash dropped so paths can be appended
    assert settings.api_base_url == "https://api.clinic.example/v1"
    assert settings.api_timeout == 2.5
    assert settings.horizon_days == 14
    assert settings.consultation_fee == 650


def test_bad_number_fails_loudly(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("BOOKING_HORIZON_DAYS", "a month")
    with pytest.raises(ValueError):
        load_settings()


def test_named_zones(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("BOOKING_TIMEZONE", "utc")
    assert load_settings().tz is timezone.utc

    monkeypatch.setenv("BOOKING_TIMEZONE", "Asia/Kolkata")
    assert load_settings().tz.utcoffset(datetime(2026, 10, 19)).total_seconds() == 5.5 * 3600
