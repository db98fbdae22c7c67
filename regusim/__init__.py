"""
ReguSim - financial contagion stress-test simulator.

Builds a random network of banks, issuers and market makers and evolves
their health step by step under configurable stress parameters, producing
a time series of market index, systemic risk, liquidity and defaults.

No file I/O required. No global randomness. All dependencies injected by user.
"""

__version__ = "0.1.0"

# Driver
from .orchestrator import Orchestrator, SimulationCompletedError

# Core engine
from .network import NetworkBuilder, InvalidArgumentError, build_network
from .simulation_rules import SimulationRules, format_aggregate_generic
from .contagion import (
    ContagionStepper,
    InvalidStateError,
    compute_market_index,
    initial_aggregate,
    step_simulation,
)

# Analysis and narratives
from .analysis import classify_stress, summarize_history
from .llm_calls import generate_pre_simulation_brief, generate_post_simulation_report

# Schemas
from .schemas import (
    AggregateState,
    AnalysisReport,
    Entity,
    EntityKind,
    HistorySummary,
    MarketStressLevel,
    Network,
    Relation,
    ShockScenario,
    SimulationResult,
    SimulationStatus,
    StressConfig,
)

# Scenario helpers
from .scenario import ScenarioLoader, StressScenario, load_scenario

__all__ = [
    # Driver
    "Orchestrator",
    "SimulationCompletedError",
    # Core engine
    "NetworkBuilder",
    "InvalidArgumentError",
    "build_network",
    "SimulationRules",
    "format_aggregate_generic",
    "ContagionStepper",
    "InvalidStateError",
    "compute_market_index",
    "initial_aggregate",
    "step_simulation",
    # Analysis and narratives
    "classify_stress",
    "summarize_history",
    "generate_pre_simulation_brief",
    "generate_post_simulation_report",
    # Schemas
    "AggregateState",
    "AnalysisReport",
    "Entity",
    "EntityKind",
    "HistorySummary",
    "MarketStressLevel",
    "Network",
    "Relation",
    "ShockScenario",
    "SimulationResult",
    "SimulationStatus",
    "StressConfig",
    # Scenario helpers
    "ScenarioLoader",
    "StressScenario",
    "load_scenario",
]
