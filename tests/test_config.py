import pytest

from swp_planner.config import DEFAULT_MAX_SWP_MONTHS, settings_from_env
from swp_planner.errors import InvalidInputError


def test_defaults_without_env(monkeypatch):
    for name in (
        "PLANNER_STORAGE_PATH",
        "PLANNER_MAX_SWP_MONTHS",
        "PLANNER_COMPOUNDING_MODE",
        "PLANNER_CAP_SIP_TERM",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = settings_from_env()

    assert settings.max_swp_months == DEFAULT_MAX_SWP_MONTHS
    assert settings.compounding_mode == "simple"
    assert settings.cap_contributions_at_declared_term is True


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("PLANNER_STORAGE_PATH", str(tmp_path / "s.json"))
    monkeypatch.setenv("PLANNER_MAX_SWP_MONTHS", "360")
    monkeypatch.setenv("PLANNER_COMPOUNDING_MODE", "Geometric")
    monkeypatch.setenv("PLANNER_CAP_SIP_TERM", "off")

    settings = settings_from_env()

    assert settings.storage_path == str(tmp_path / "s.json")
    assert settings.max_swp_months == 360
    assert settings.compounding_mode == "geometric"
    assert settings.cap_contributions_at_declared_term is False


@pytest.mark.parametrize(
    "name, value",
    [("PLANNER_COMPOUNDING_MODE", "daily"), ("PLANNER_MAX_SWP_MONTHS", "many"), ("PLANNER_MAX_TOTAL_MONTHS", "-1")],
)
def test_invalid_env_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(InvalidInputError):
        settings_from_env()
