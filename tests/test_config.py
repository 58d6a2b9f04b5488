import logging

from emi_calc.config import Settings, level_from_name


def test_defaults(monkeypatch):
    for name in ("LOG_LEVEL", "MAX_PRINT_ROWS", "DATABASE_URL", "MAX_SCENARIOS_PER_USER"):
        monkeypatch.delenv(f"EMI_CALC_{name}", raising=False)
    settings = Settings()
    assert settings.log_level == "WARNING"
    assert settings.max_print_rows == 120
    assert settings.database_url == "sqlite:///comparison_data.sqlite3"
    assert settings.max_scenarios_per_user == 10


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("EMI_CALC_MAX_PRINT_ROWS", "5")
    monkeypatch.setenv("EMI_CALC_LOG_LEVEL", "debug")
    settings = Settings()
    assert settings.max_print_rows == 5
    assert settings.log_level_int == logging.DEBUG


def test_invalid_int_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("EMI_CALC_MAX_PRINT_ROWS", "many")
    assert Settings().max_print_rows == 120


def test_level_from_name():
    assert level_from_name("info") == logging.INFO
    assert level_from_name("nonsense") == logging.WARNING
    assert level_from_name(None) == logging.WARNING
