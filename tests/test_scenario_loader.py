"""Tests for scenario loading via ScenarioLoader."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from regusim.scenario import ScenarioLoader, load_scenario
from regusim.schemas import ShockScenario

SCENARIOS_DIR = Path(__file__).resolve().parent.parent / "examples" / "scenarios"


def _write(tmp_path: Path, name: str, payload: dict) -> Path:
    path = tmp_path / f"{name}.json"
    path.write_text(json.dumps(payload))
    return path


def test_bundled_scenarios_load():
    loader = ScenarioLoader(scenarios_dir=SCENARIOS_DIR)

    assert {"baseline", "oil_collapse", "fatwa_panic"} <= set(loader.available())

    scenario = loader.load("oil_collapse")
    assert scenario.config.shock_scenario is ShockScenario.OIL_PRICE_COLLAPSE
    assert scenario.config.tangibility_ratio_min == 33
    assert scenario.population_size == 60
    assert scenario.seed == 7
    assert scenario.max_time == 100


def test_optional_fields_take_defaults(tmp_path):
    _write(
        tmp_path,
        "minimal",
        {"name": "minimal", "description": "defaults only", "config": {}},
    )

    scenario = load_scenario("minimal", scenarios_dir=tmp_path)

    assert scenario.config.market_liquidity_base == 80
    assert scenario.seed is None
    assert scenario.population_size >= 0


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ScenarioLoader(scenarios_dir=tmp_path).load("nope")


def test_missing_required_fields_raise(tmp_path):
    _write(tmp_path, "broken", {"name": "broken"})

    with pytest.raises(ValueError, match="missing required fields"):
        ScenarioLoader(scenarios_dir=tmp_path).load("broken")


def test_out_of_range_config_rejected(tmp_path):
    _write(
        tmp_path,
        "bad",
        {"name": "bad", "description": "panic too high", "config": {"investor_panic_sensitivity": 150}},
    )

    with pytest.raises(ValidationError):
        ScenarioLoader(scenarios_dir=tmp_path).load("bad")


def test_load_path_accepts_explicit_file(tmp_path):
    path = _write(
        tmp_path,
        "explicit",
        {
            "name": "explicit",
            "description": "explicit path",
            "config": {"shock_scenario": "Sudden Fatwa Revision"},
            "population_size": 12,
        },
    )

    scenario = ScenarioLoader().load_path(path)

    assert scenario.population_size == 12
    assert scenario.config.shock_scenario is ShockScenario.FATWA_REVISION
