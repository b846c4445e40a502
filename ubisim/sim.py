"""
Scenario Builder & Simulation Driver Module

Builds the starting world for an anchor test from a sparse setup, then runs
the stepper month by month:
- build_initial_state() -> SimulationState
- build_corporations(setup) -> list[Corporation]
- build_model_parameters(setup) -> ModelParameters
- run_simulation(months, setup, stepper) -> SimulationRun

Every build starts from fresh baseline copies; nothing here is shared
between runs.
"""

import logging
import math
from collections.abc import Callable
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Optional

from .models import (
    AnchorTestSetup,
    Corporation,
    DefaultCorpPolicy,
    ModelParameters,
    SimulationOutput,
    SimulationState,
)
from .stepper import step_simulation
from .world import build_baseline_corporations, build_baseline_countries

logger = logging.getLogger(__name__)

Stepper = Callable[[SimulationState, list[Corporation], ModelParameters], SimulationOutput]

DEFAULT_DISPLACEMENT_RATE = 0.75
DEFAULT_MARKET_PRESSURE = 0.5

INITIAL_AI_ADOPTION = 0.1
INITIAL_WELLBEING = 70.0


@dataclass
class SimulationRun:
    """Everything a single driver run produced."""
    initial: SimulationState
    final: SimulationState
    history: list[SimulationOutput] = field(default_factory=list)
    max_race_to_bottom_risk: float = 0.0
    corporations: list[Corporation] = field(default_factory=list)

    @property
    def months(self) -> int:
        return len(self.history)


def resolve_fraction(value: object, default: Optional[float], name: str) -> Optional[float]:
    """Return value if it is a usable fraction in [0, 1], else the default."""
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning("Setup %s=%r is not numeric; using default %s", name, value, default)
        return default
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        logger.warning("Setup %s=%r is outside [0, 1]; using default %s", name, value, default)
        return default
    return float(value)


def build_initial_state() -> SimulationState:
    """
    Build the anchor-test starting state.

    Every country starts at 10% AI adoption and wellbeing 70 with nothing
    joined or received. The shadow copy is a separate set of objects.
    """
    countries = build_baseline_countries()
    for country in countries:
        country.ai_adoption = INITIAL_AI_ADOPTION
        country.wellbeing = INITIAL_WELLBEING
        country.companies_joined = 0

    country_data = {c.id: c for c in countries}
    world_population = sum(c.population for c in countries)

    return SimulationState(
        month=0,
        global_fund=0.0,
        average_wellbeing=(
            sum(c.wellbeing * c.population for c in countries) / world_population
            if world_population > 0
            else INITIAL_WELLBEING
        ),
        total_ai_companies=0,
        country_data=country_data,
        shadow_country_data=deepcopy(country_data),
        global_displacement_gap=0.0,
        corruption_leakage=0.0,
        countries_in_crisis=0,
    )


def build_corporations(setup: AnchorTestSetup) -> list[Corporation]:
    """
    Baseline corporations with the setup's uniform overrides applied.

    Overrides are per field: a setup that only sets the contribution rate
    keeps every corporation's own stance and distribution strategy.
    """
    corporations = build_baseline_corporations()

    # A malformed rate keeps each corporation's baseline rate
    rate = resolve_fraction(setup.all_corps_contribution_rate, None, "all_corps_contribution_rate")

    for corp in corporations:
        if rate is not None:
            corp.contribution_rate = rate
        if setup.all_corps_policy_stance is not None:
            corp.policy_stance = setup.all_corps_policy_stance
        if setup.distribution_strategy is not None:
            corp.distribution_strategy = setup.distribution_strategy

    return corporations


def build_model_parameters(setup: AnchorTestSetup) -> ModelParameters:
    """
    Fixed anchor-test parameters; only displacement rate and market pressure
    come from the setup.
    """
    return ModelParameters(
        id="anchor-test",
        name="Anchor Test Model",
        description="Fixed parameters for anchor testing",
        corporate_tax_rate=0.20,
        adoption_incentive=0.20,
        base_ubi=300,
        ai_growth_rate=0.08,
        volatility=0.05,
        gdp_scaling=0.4,
        global_redistribution_rate=0.3,
        displacement_rate=resolve_fraction(
            setup.displacement_rate, DEFAULT_DISPLACEMENT_RATE, "displacement_rate"
        ),
        direct_to_wallet_enabled=True,
        default_corp_policy=DefaultCorpPolicy.MIXED_REALITY,
        market_pressure=resolve_fraction(
            setup.market_pressure, DEFAULT_MARKET_PRESSURE, "market_pressure"
        ),
    )


def run_simulation(
    months: int,
    setup: AnchorTestSetup,
    stepper: Optional[Stepper] = None,
) -> SimulationRun:
    """
    Run the stepper for the given number of months.

    State and corporations returned by each step replace the previous ones
    wholesale. The peak race-to-bottom risk is tracked separately because
    some assertions look at the transient maximum, not the last month.

    Args:
        months: Months to simulate (0 returns the initial state unchanged)
        setup: Sparse scenario overrides
        stepper: Month stepper (defaults to step_simulation)

    Returns:
        SimulationRun with initial and final state, per-month history and
        the peak race-to-bottom risk
    """
    step = stepper or step_simulation

    initial = build_initial_state()
    corporations = build_corporations(setup)
    model = build_model_parameters(setup)

    state = initial
    history: list[SimulationOutput] = []
    max_risk = 0.0

    for _ in range(max(0, months)):
        output = step(state, corporations, model)
        history.append(output)
        state = output.state
        corporations = output.corporations
        max_risk = max(max_risk, output.game_theory.race_to_bottom_risk)

    return SimulationRun(
        initial=initial,
        final=state,
        history=history,
        max_race_to_bottom_risk=max_risk,
        corporations=corporations,
    )
