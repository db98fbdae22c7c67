"""
Pydantic schemas for the ReguSim contagion engine.

All data structures exchanged between the network builder, the contagion
stepper, the driver and the narrative generator are defined here.

Design Philosophy:
- Entities and relations are plain records; behaviour lives in the rules
- Aggregate states form an append-only history, one per discrete step
- Reserved attributes (exposure, strength, shock scenario) are carried for
  the narrative generator and future extensions, never read by the step rule
- Pydantic validation keeps the numeric invariants visible at the boundary
"""

from enum import Enum
from typing import List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Layout space used by the (external) renderer. Positions are drawn once.
LAYOUT_WIDTH = 400.0
LAYOUT_HEIGHT = 300.0

# Market index never falls below this floor.
MARKET_INDEX_FLOOR = 10.0


# ============================================================================
# Enumerations
# ============================================================================


class EntityKind(str, Enum):
    """Role of a network participant.

    Kind only matters at generation time (weighted draw) and for shock
    eligibility at step 5; the update rule is otherwise uniform.
    """

    BANK = "BANK"
    ISSUER = "ISSUER"
    MARKET_MAKER = "MARKET_MAKER"


class ShockScenario(str, Enum):
    """Named shock scenarios offered to the operator.

    Scenario identity only flavours the narrative text. The numeric shock is
    always the issuer hit at step 5.
    """

    TANGIBILITY_BREACH = "Tangibility Breach (Global)"
    MAJOR_BANK_DEFAULT = "Major Bank Default"
    FATWA_REVISION = "Sudden Fatwa Revision"
    OIL_PRICE_COLLAPSE = "Oil Price Collapse"


class MarketStressLevel(str, Enum):
    """Qualitative band for a systemic risk score."""

    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    EXTREME = "Extreme"


class SimulationStatus(str, Enum):
    """Lifecycle of a driver instance."""

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


# ============================================================================
# Network Schemas
# ============================================================================


class Entity(BaseModel):
    """A participant in the simulated financial network.

    Entities are never removed. A defaulted entity stays in the population
    with ``health == 0`` so the population size is constant across steps.
    """

    id: str = Field(..., description="Unique identifier, stable for the whole run")
    kind: EntityKind = Field(..., description="Bank, issuer or market maker")
    health: float = Field(
        100.0, ge=0.0, le=100.0, description="Solvency score; 100 = healthy, 0 = defaulted"
    )
    # Reserved: stored and forwarded, not consumed by the update rule.
    exposure: float = Field(..., ge=0.0, lt=100.0, description="Reserved exposure score")
    position: Tuple[float, float] = Field(
        ..., description="(x, y) coordinate in the fixed 400x300 layout space"
    )

    @property
    def defaulted(self) -> bool:
        return self.health <= 0


class Relation(BaseModel):
    """Directed, weighted edge between two entities.

    Duplicate source/target pairs are permitted. Self-loops are not.
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(..., description="Source entity id")
    target: str = Field(..., description="Target entity id")
    # Reserved: stored and forwarded, not consumed by the update rule.
    strength: float = Field(..., ge=0.0, lt=1.0, description="Reserved edge weight")

    @model_validator(mode="after")
    def _reject_self_loop(self) -> "Relation":
        if self.source == self.target:
            raise ValueError(f"Self-loop relation on entity '{self.source}' is not allowed")
        return self


class Network(BaseModel):
    """Entities and relations produced once by the network builder."""

    entities: List[Entity] = Field(default_factory=list, description="Network participants")
    relations: List[Relation] = Field(default_factory=list, description="Directed edges")

    @property
    def size(self) -> int:
        return len(self.entities)


# ============================================================================
# Aggregate / Config Schemas
# ============================================================================


class AggregateState(BaseModel):
    """Per-step market summary. The run history is an ordered list of these."""

    time: int = Field(..., ge=0, description="Step counter, +1 per step, starts at 0")
    market_index: float = Field(
        ..., ge=MARKET_INDEX_FLOOR, description="Price index, floor-clamped at 10"
    )
    systemic_risk: float = Field(
        ..., ge=0.0, le=100.0, description="100 minus the average entity health"
    )
    liquidity: float = Field(..., ge=0.0, le=100.0, description="Market liquidity (stateful)")
    # Recomputed from current health values each step, not cumulative.
    default_count: int = Field(..., ge=0, description="Entities currently at health <= 0")


class StressConfig(BaseModel):
    """Stress-test parameters, immutable for the duration of a run."""

    model_config = ConfigDict(frozen=True)

    tangibility_ratio_min: int = Field(
        51, ge=0, le=100, description="Tangibility requirement; higher = harder to trigger risk"
    )
    market_liquidity_base: int = Field(
        80, ge=0, le=100, description="Initial liquidity and recovery threshold"
    )
    investor_panic_sensitivity: int = Field(
        50, ge=0, le=100, description="Scales panic-driven health decay"
    )
    shock_scenario: ShockScenario = Field(
        ShockScenario.TANGIBILITY_BREACH, description="Named shock (narrative only)"
    )

    @property
    def risk_trigger(self) -> float:
        """Systemic risk above which contagion pressure applies."""
        return 100 - self.tangibility_ratio_min


# ============================================================================
# Narrative / Result Schemas
# ============================================================================


class SimulationBrief(BaseModel):
    """Pre-simulation brief returned by the narrative generator."""

    text: str = Field(..., description="Short professional brief (max ~100 words)")


class AnalysisReport(BaseModel):
    """Post-simulation report returned by the narrative generator."""

    summary: str = Field(..., description="Executive summary of the contagion event")
    risk_assessment: str = Field(..., description="Assessment of the systemic fragility exposed")
    recommendations: List[str] = Field(
        default_factory=list, description="Ordered policy recommendations"
    )


class HistorySummary(BaseModel):
    """Headline numbers derived from a run history."""

    steps: int = Field(..., ge=0, description="Number of steps taken after the initial state")
    initial_index: float
    final_index: float
    market_drop_pct: float = Field(
        ..., description="(initial - final) / initial * 100; negative means the index rose"
    )
    final_systemic_risk: float
    peak_systemic_risk: float
    min_liquidity: float
    final_default_count: int
    stress_level: MarketStressLevel


class SimulationResult(BaseModel):
    """Everything a driver run produces."""

    run_id: UUID
    config: StressConfig
    status: SimulationStatus
    network: Network
    history: List[AggregateState]
    brief: Optional[str] = None
    report: Optional[AnalysisReport] = None

    @property
    def final_state(self) -> AggregateState:
        return self.history[-1]
