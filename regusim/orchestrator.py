"""
Main simulation orchestrator (the driver).

Owns one isolated run: its network, its entity population, its aggregate
history and its random generator. All collaborators are injected.

Coordinates the simulation loop:
1. Build the network once and record the initial aggregate
2. Optionally request a pre-simulation brief (narrative generator)
3. Call the rules' step function once per tick, threading each output into
   the next input, until the rules' termination predicate holds
4. Notify tick listeners after each step
5. Optionally request a post-simulation report
"""

import random
from typing import Callable, Dict, List, Optional
from uuid import UUID, uuid4

from .config import Config
from .contagion import ContagionStepper, initial_aggregate
from .llm_calls import generate_post_simulation_report, generate_pre_simulation_brief
from .logging_utils import log_deterministic, log_error, log_info, log_llm, log_success
from .network import NetworkBuilder
from .schemas import (
    AggregateState,
    AnalysisReport,
    Entity,
    Network,
    SimulationResult,
    SimulationStatus,
    StressConfig,
)
from .simulation_rules import SimulationRules


TickListener = Callable[[AggregateState, AggregateState, List[Entity]], None]


# =============================
# Module-level Exceptions
# =============================

class SimulationCompletedError(RuntimeError):
    """Raised when a step is requested after the termination predicate holds."""

    def __init__(self, *, time: int) -> None:
        self.time = time
        super().__init__(
            f"Simulation already completed at time {time}.\n\n"
            "Remediation tips:\n"
            "  - Call reset() to rebuild the network and start a new run\n"
            "  - Pass a larger max_time to run longer"
        )


class Orchestrator:
    """
    Drives one contagion stress test.

    The orchestrator is the only stateful piece: rules are stateless and the
    step function never sees anything but its explicit arguments. Run several
    orchestrators side by side for independent simulations.

    Status moves IDLE -> RUNNING -> COMPLETED. A ``run`` call cut short by
    ``max_steps`` leaves the run PAUSED until the next ``run`` or ``advance``.
    """

    def __init__(
        self,
        config: StressConfig,
        *,
        population_size: Optional[int] = None,
        rules: Optional[SimulationRules] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        max_time: Optional[int] = None,
        llm_provider: Optional[str] = None,
        llm_model: Optional[str] = None,
        narrate: bool = False,
        tick_listeners: Optional[List[TickListener]] = None,
        verbose: bool = True,
    ):
        """Initialize the run and build its network.

        Args:
            config: Stress-test parameters (immutable for the run)
            population_size: Number of entities (defaults to Config.DEFAULT_POPULATION)
            rules: Step rules (defaults to ContagionStepper)
            rng: Random source; takes precedence over ``seed``
            seed: Seed for a private ``random.Random`` when ``rng`` is not given
            max_time: Horizon for the default rules (defaults to
                Config.DEFAULT_MAX_TIME). Custom ``rules`` carry their own horizon.
            llm_provider: Optional narrative provider (e.g., "openai", "anthropic")
            llm_model: Optional narrative model identifier
            narrate: Request a brief before and a report after the run
            tick_listeners: Callables invoked after each step with
                (previous_aggregate, new_aggregate, entities).
            verbose: Print per-tick progress lines

        Raises:
            ValueError: If both ``rules`` and ``max_time`` are given.
        """
        if rules is not None and max_time is not None:
            raise ValueError(
                "Pass max_time only with the default rules; "
                "custom rules set their own horizon (e.g. ContagionStepper(max_time=...))"
            )

        self.config = config
        self.population_size = (
            Config.DEFAULT_POPULATION if population_size is None else population_size
        )
        self.rules = rules or ContagionStepper(
            max_time=max_time if max_time is not None else Config.DEFAULT_MAX_TIME
        )
        # A private generator per orchestrator keeps concurrent runs isolated
        # and makes a seeded run reproducible end to end.
        self.rng = rng or random.Random(seed)
        self.llm_provider = llm_provider
        self.llm_model = llm_model
        self.narrate = narrate
        self.tick_listeners = tick_listeners or []
        self.verbose = verbose

        self.brief: Optional[str] = None
        self.report: Optional[AnalysisReport] = None
        self._initialize_run()

    def _initialize_run(self) -> None:
        network = NetworkBuilder(self.rng).build(self.population_size)
        network, start = self.rules.on_simulation_start(network, initial_aggregate(self.config))
        self.network: Network = network
        self.entities: List[Entity] = list(network.entities)
        self.history: List[AggregateState] = [start]
        self.status = SimulationStatus.IDLE
        self.run_id: UUID = uuid4()
        self.brief = None
        self.report = None

    @property
    def current_state(self) -> AggregateState:
        return self.history[-1]

    @property
    def is_complete(self) -> bool:
        return self.rules.should_stop(self.current_state)

    def reset(self) -> None:
        """Discard the current run and rebuild a fresh network with the same config."""

        self._initialize_run()

    def _finish(self) -> None:
        final = self.rules.on_simulation_end(self.entities, self.current_state)
        self.history[-1] = final
        self.status = SimulationStatus.COMPLETED
        if self.verbose:
            log_success(f"Simulation complete at time {final.time}.")

    def advance(self) -> AggregateState:
        """Run exactly one step and append its aggregate to the history.

        The step that reaches the horizon also completes the run: the rules'
        ``on_simulation_end`` hook runs and the status becomes COMPLETED.

        Raises:
            SimulationCompletedError: If the termination predicate already holds.
        """
        previous = self.current_state
        if self.status == SimulationStatus.COMPLETED or self.rules.should_stop(previous):
            raise SimulationCompletedError(time=previous.time)

        self.status = SimulationStatus.RUNNING
        if self.verbose:
            log_deterministic(f"[Step] t={previous.time} -> {previous.time + 1}")
        self.entities, current = self.rules.step(self.entities, previous, self.config, self.rng)
        self.history.append(current)
        if self.verbose:
            log_success(f"[Market] {self.rules.format_aggregate_summary(current)}")

        for listener in self.tick_listeners:
            listener(previous, current, self.entities)

        if self.is_complete:
            self._finish()
        return self.current_state

    async def run(self, max_steps: Optional[int] = None) -> SimulationResult:
        """Drive the run until the rules signal completion.

        Args:
            max_steps: Optional cap on steps taken by this call. The run is
                PAUSED if the cap is hit first; call ``run`` again to resume.

        Returns:
            SimulationResult with network, full history and any narratives

        Raises:
            SimulationCompletedError: If the run had already completed.
            InvalidStateError: If the rules reject the population (e.g. empty).
        """
        if self.status == SimulationStatus.COMPLETED or self.is_complete:
            raise SimulationCompletedError(time=self.current_state.time)

        if self.status == SimulationStatus.IDLE:
            if self.verbose:
                log_info(
                    f"Starting stress test {self.run_id} "
                    f"({len(self.entities)} entities, {len(self.network.relations)} relations)"
                )
                log_info(f"Shock scenario: {self.config.shock_scenario.value}")
            if self.narrate:
                log_llm("[Brief] Requesting pre-simulation brief...")
                self.brief = await generate_pre_simulation_brief(
                    self.config, self.llm_provider, self.llm_model
                )
        self.status = SimulationStatus.RUNNING

        steps_taken = 0
        while self.status != SimulationStatus.COMPLETED:
            if max_steps is not None and steps_taken >= max_steps:
                self.status = SimulationStatus.PAUSED
                break
            try:
                self.advance()
            except Exception as e:
                log_error(f"ERROR at time {self.current_state.time}: {e}")
                raise
            steps_taken += 1

        if self.status == SimulationStatus.COMPLETED and self.narrate:
            log_llm("[Report] Requesting post-simulation report...")
            self.report = await generate_post_simulation_report(
                self.config, self.history, self.llm_provider, self.llm_model
            )

        return self.result()

    def result(self) -> SimulationResult:
        """Snapshot of the run so far."""

        return SimulationResult(
            run_id=self.run_id,
            config=self.config,
            status=self.status,
            network=Network(entities=list(self.entities), relations=self.network.relations),
            history=list(self.history),
            brief=self.brief,
            report=self.report,
        )

    def kind_breakdown(self) -> Dict[str, int]:
        """Count of entities per kind, for console summaries."""

        counts: Dict[str, int] = {}
        for entity in self.entities:
            counts[entity.kind.value] = counts.get(entity.kind.value, 0) + 1
        return counts
