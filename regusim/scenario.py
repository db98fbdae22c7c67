"""
Scenario loading for JSON-defined stress tests.

A scenario file names a stress configuration plus the run parameters the
driver needs (population size, seed, horizon). Scenarios are data, not code,
so analysts can keep a library of named stress tests next to the package.

Scenario file structure:
```json
{
  "name": "oil_collapse",
  "description": "Low tangibility market hit by an oil price collapse",
  "config": {
    "tangibility_ratio_min": 33,
    "market_liquidity_base": 55,
    "investor_panic_sensitivity": 70,
    "shock_scenario": "Oil Price Collapse"
  },
  "population_size": 60,
  "seed": 7,
  "max_time": 100
}
```

Usage:
    loader = ScenarioLoader()
    scenario = loader.load("oil_collapse")
    orchestrator = Orchestrator(scenario.config, population_size=scenario.population_size,
                                seed=scenario.seed)
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .config import Config
from .schemas import StressConfig


class StressScenario(BaseModel):
    """A named, reproducible stress test definition."""

    name: str = Field(..., description="Scenario identifier")
    description: str = Field(..., description="What the stress test explores")
    config: StressConfig = Field(..., description="Stress-test parameters")
    population_size: int = Field(
        default_factory=lambda: Config.DEFAULT_POPULATION,
        ge=0,
        description="Number of entities in the network",
    )
    seed: Optional[int] = Field(None, description="Seed for reproducible runs")
    max_time: int = Field(
        default_factory=lambda: Config.DEFAULT_MAX_TIME,
        ge=0,
        description="Step at which the driver stops",
    )


class ScenarioLoader:
    """Load and validate stress scenarios from JSON files.

    Directory structure:
    - Default: Config.SCENARIOS_DIR ({PROJECT_ROOT}/examples/scenarios)
    - Override via constructor: ScenarioLoader(Path("/custom/scenarios"))
    - Scenario files: {scenario_name}.json
    """

    REQUIRED_FIELDS = ("name", "description", "config")

    def __init__(self, scenarios_dir: Optional[Path] = None):
        self.scenarios_dir = scenarios_dir or Config.SCENARIOS_DIR

    def load(self, scenario_name: str) -> StressScenario:
        """Load a scenario by name from ``{scenarios_dir}/{scenario_name}.json``.

        Raises:
            FileNotFoundError: If the scenario file doesn't exist
            ValueError: If required fields are missing
            pydantic.ValidationError: If values are out of range
            json.JSONDecodeError: If the file contains invalid JSON
        """
        scenario_path = self.scenarios_dir / f"{scenario_name}.json"

        if not scenario_path.exists():
            raise FileNotFoundError(
                f"Scenario '{scenario_name}' not found at {scenario_path}"
            )

        return self.load_path(scenario_path)

    def load_path(self, path: Path) -> StressScenario:
        """Load a scenario from an explicit file path."""

        data = json.loads(Path(path).read_text())
        self._validate_scenario(data)
        return StressScenario.model_validate(data)

    def available(self) -> list[str]:
        """Names of the scenarios present in ``scenarios_dir``."""

        if not self.scenarios_dir.exists():
            return []
        return sorted(path.stem for path in self.scenarios_dir.glob("*.json"))

    def _validate_scenario(self, data: Dict[str, Any]) -> None:
        missing = [field for field in self.REQUIRED_FIELDS if field not in data]
        if missing:
            raise ValueError(f"Scenario missing required fields: {missing}")

        if not isinstance(data["config"], dict):
            raise ValueError("Scenario 'config' must be an object")


def load_scenario(scenario_name: str, scenarios_dir: Optional[Path] = None) -> StressScenario:
    """Shortcut for ``ScenarioLoader(scenarios_dir).load(scenario_name)``."""

    return ScenarioLoader(scenarios_dir).load(scenario_name)
