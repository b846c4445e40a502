"""
Simulation Stepper Module

Advances the world by one month. This is the default stepper used by the
anchor tests; any callable with the same signature can replace it.

    step_simulation(state, corporations, model) -> SimulationOutput

Pure function: inputs are copied before anything changes, there is no I/O
and no randomness, so identical inputs always give identical outputs.

Monthly phases:
1. AI adoption grows in every country
2. Displaced wages are captured as corporate AI revenue
3. Corporations contribute a share of revenue, routed by strategy
4. The global pool is paid out per capita; wellbeing moves toward a target
5. Corporations adapt contribution policy to demand and reputation
6. Game-theory indicators summarise the resulting policy mix

Units: population in millions, GDP per capita in USD/year, money in
billions USD/month, per-capita payouts in USD/month.
"""

import logging
import math

from .models import (
    Corporation,
    CountryStats,
    DistributionStrategy,
    GameTheoryState,
    GlobalLedger,
    ModelParameters,
    PolicyStance,
    SimulationOutput,
    SimulationState,
)

logger = logging.getLogger(__name__)

WELLBEING_BASELINE = 70.0
RELAXATION_RATE = 0.15       # fraction of the distance to target covered per month
TREND_WINDOW = 6             # months of wellbeing history kept per country
CRISIS_GAP_SHARE = 0.3       # uncovered share of the monthly wage that marks a crisis
MAX_CONTRIBUTION_RATE = 0.50
DEMAND_COLLAPSE_TRIGGER = 0.05
PROJECTION_MONTHS = 12


# =============================================================================
# COUNTRY DYNAMICS
# =============================================================================

def _monthly_wage(country: CountryStats) -> float:
    return country.gdp_per_capita / 12


def _grow_adoption(country: CountryStats, model: ModelParameters, speed: float = 1.0) -> float:
    """Logistic-style adoption growth; richer countries adopt faster."""
    regional_modifier = 1 + country.gdp_per_capita / 100000
    growth = model.ai_growth_rate * (1 + model.adoption_incentive) * regional_modifier * 0.5 * speed
    return min(0.999, country.ai_adoption + growth * (1 - country.ai_adoption))


def _effective_ubi(per_capita: float, country: CountryStats, model: ModelParameters) -> float:
    """Per-capita UBI adjusted for inequality (Gini damper) and the GDP wealth gradient."""
    gini_damper = 1.5 - country.gini
    scaling_offset = math.log10(country.gdp_per_capita + 1000) - 4
    wealth_gradient = max(0.5, 1 + model.gdp_scaling * 0.5 * scaling_offset)
    return per_capita * gini_damper * wealth_gradient


def _wellbeing_target(
    country: CountryStats, ubi_per_capita: float, model: ModelParameters
) -> tuple[float, float]:
    """
    Wellbeing the country is drifting toward under current conditions.

    Returns:
        (target, gap_share) where gap_share is the share of the monthly wage
        lost to displacement and not covered by UBI.
    """
    wage = _monthly_wage(country)
    if wage <= 0:
        return WELLBEING_BASELINE, 0.0

    lost_wages = wage * country.ai_adoption * model.displacement_rate
    effective = _effective_ubi(ubi_per_capita, country, model)
    gap_share = max(0.0, lost_wages - effective) / wage

    # Institutions buffer the pain of an uncovered gap
    pain = gap_share * (1.3 - 0.6 * country.governance)
    # Transition anxiety peaks at mid adoption
    friction = 8 * (1 - country.governance) * math.sin(math.pi * country.ai_adoption)
    relief = 20 * min(1.0, effective / wage)

    target = WELLBEING_BASELINE - 50 * pain - friction + relief
    return target, gap_share


def _relax(current: float, target: float) -> float:
    return max(1.0, min(100.0, current + RELAXATION_RATE * (target - current)))


def _reset_monthly_tracking(country: CountryStats) -> None:
    country.ubi_received_global = 0.0
    country.ubi_received_local = 0.0
    country.ubi_received_customer_weighted = 0.0
    country.total_ubi_received = 0.0
    country.companies_joined = 0


# =============================================================================
# CORPORATE REVENUE & DISTRIBUTION
# =============================================================================

def _customer_base_wellbeing(corp: Corporation, countries: dict[str, CountryStats]) -> float:
    markets = [countries[cid] for cid in corp.operating_countries if cid in countries]
    total_population = sum(c.population for c in markets)
    if total_population <= 0:
        return 50.0
    return sum(c.wellbeing * c.population for c in markets) / total_population


def _distribute_customer_weighted(
    corp: Corporation, contribution: float, countries: dict[str, CountryStats]
) -> bool:
    """Split a contribution across operating countries by population. False if nowhere to send it."""
    markets = [countries[cid] for cid in corp.operating_countries if cid in countries]
    total_population = sum(c.population for c in markets)
    if total_population <= 0:
        return False
    for country in markets:
        country.ubi_received_customer_weighted += contribution * country.population / total_population
    return True


def _distribute_hq_local(
    corp: Corporation, contribution: float, countries: dict[str, CountryStats]
) -> bool:
    """Send a contribution to the HQ country. False if the HQ country is unknown."""
    hq_country = countries.get(corp.headquarters_country)
    if hq_country is None:
        return False
    hq_country.ubi_received_local += contribution
    return True


# =============================================================================
# CORPORATE ADAPTATION
# =============================================================================

def _raise_rate(rate: float, step: float) -> float:
    if rate >= MAX_CONTRIBUTION_RATE:
        return rate
    return min(MAX_CONTRIBUTION_RATE, rate + step)


def _extrapolate_trend(trend: list[float], months_ahead: int) -> float:
    if len(trend) < 2:
        return trend[0] if trend else WELLBEING_BASELINE
    monthly_change = (trend[-1] - trend[0]) / len(trend)
    return max(0.0, min(100.0, trend[-1] + monthly_change * months_ahead))


def _project_demand_collapse(corp: Corporation, countries: dict[str, CountryStats]) -> float:
    """Projected fractional drop in customer demand if wellbeing trends continue."""
    current_demand = 0.0
    projected_demand = 0.0
    for cid in corp.operating_countries:
        country = countries.get(cid)
        if country is None:
            continue
        spending_power = country.population * country.gdp_per_capita
        current_demand += spending_power * country.wellbeing / 100
        trend = country.wellbeing_trend or [country.wellbeing]
        projected_demand += spending_power * _extrapolate_trend(trend, PROJECTION_MONTHS) / 100

    if current_demand <= 0:
        return 0.0
    return max(0.0, (current_demand - projected_demand) / current_demand)


def _adapt_to_demand(
    corp: Corporation, countries: dict[str, CountryStats], model: ModelParameters, month: int
) -> None:
    """Enlightened self-interest: protect the customer base when it is collapsing."""
    collapse = _project_demand_collapse(corp, countries)
    corp.projected_demand_collapse = collapse

    # Neutral market pressure (0.5) leaves policy untouched
    responsiveness = max(0.0, (model.market_pressure - 0.5) * 2)
    if collapse > DEMAND_COLLAPSE_TRIGGER and responsiveness > 0:
        corp.contribution_rate = _raise_rate(corp.contribution_rate, 0.02 * responsiveness)
        if corp.distribution_strategy == DistributionStrategy.HQ_LOCAL:
            corp.distribution_strategy = DistributionStrategy.CUSTOMER_WEIGHTED
        corp.last_policy_change = month

    if corp.reputation_score < 30:
        corp.contribution_rate = _raise_rate(corp.contribution_rate, 0.01)


def _respond_to_competitors(corp: Corporation, corps: list[Corporation], rates: dict[str, float]) -> None:
    """Reputation pressure from competitors sharing at least one market."""
    markets = set(corp.operating_countries)
    competitors = [c for c in corps if c.id != corp.id and markets.intersection(c.operating_countries)]
    if not competitors:
        return

    avg_competitor_rate = sum(rates[c.id] for c in competitors) / len(competitors)
    rate_diff = avg_competitor_rate - rates[corp.id]

    if rate_diff > 0.10:
        corp.reputation_score = max(0.0, corp.reputation_score - 2)
        corp.contribution_rate = _raise_rate(corp.contribution_rate, 0.01)
    elif rate_diff < -0.10:
        corp.reputation_score = min(100.0, corp.reputation_score + 1)


def _update_reputation(corp: Corporation, avg_rate: float) -> None:
    if corp.contribution_rate > avg_rate * 1.2:
        corp.reputation_score = min(100.0, corp.reputation_score + 2)
    elif corp.contribution_rate < avg_rate * 0.8:
        corp.reputation_score = max(0.0, corp.reputation_score - 3)
    elif corp.reputation_score > 50:
        corp.reputation_score -= 0.5
    else:
        corp.reputation_score += 0.5

    if corp.contribution_rate >= 0.25:
        corp.policy_stance = PolicyStance.GENEROUS
    elif corp.contribution_rate >= 0.12:
        corp.policy_stance = PolicyStance.MODERATE
    else:
        corp.policy_stance = PolicyStance.SELFISH


def analyze_game_theory(corps: list[Corporation]) -> GameTheoryState:
    """
    Summarise the policy mix as prisoner's-dilemma indicators.

    Race-to-bottom risk rises once more than 40% of corporations defect
    (selfish); virtuous-cycle strength rises once more than 60% cooperate.
    """
    total = len(corps)
    defectors = sum(1 for c in corps if c.policy_stance == PolicyStance.SELFISH)
    cooperators = sum(1 for c in corps if c.policy_stance == PolicyStance.GENEROUS)
    moderates = sum(1 for c in corps if c.policy_stance == PolicyStance.MODERATE)

    if total == 0:
        return GameTheoryState(
            is_in_prisoners_dilemma=False,
            defection_count=0,
            cooperation_count=0,
            moderate_count=0,
            race_to_bottom_risk=0.0,
            virtuous_cycle_strength=0.0,
            avg_contribution_rate=0.0,
        )

    avg_contribution = sum(c.contribution_rate for c in corps) / total
    race_to_bottom_risk = (
        (defectors - total * 0.4) / (total * 0.6) if defectors > total * 0.4 else 0.0
    )
    virtuous_cycle_strength = (
        (cooperators - total * 0.6) / (total * 0.4) if cooperators > total * 0.6 else 0.0
    )

    return GameTheoryState(
        is_in_prisoners_dilemma=race_to_bottom_risk > 0.3 and virtuous_cycle_strength < 0.3,
        defection_count=defectors,
        cooperation_count=cooperators,
        moderate_count=moderates,
        race_to_bottom_risk=min(1.0, race_to_bottom_risk),
        virtuous_cycle_strength=min(1.0, virtuous_cycle_strength),
        avg_contribution_rate=avg_contribution,
    )


# =============================================================================
# MAIN STEP
# =============================================================================

def step_simulation(
    state: SimulationState,
    corporations: list[Corporation],
    model: ModelParameters,
) -> SimulationOutput:
    """
    Execute one month of the economic simulation.

    Args:
        state: Current world state (never mutated)
        corporations: Current corporations (never mutated)
        model: Model parameters for this run

    Returns:
        SimulationOutput with the next state, adapted corporations, the
        month's ledger and game-theory indicators
    """
    next_month = state.month + 1
    countries = {cid: c.model_copy(deep=True) for cid, c in state.country_data.items()}
    shadows = {cid: c.model_copy(deep=True) for cid, c in state.shadow_country_data.items()}
    corps = [c.model_copy(deep=True) for c in corporations]
    ledger = GlobalLedger()

    world_population = sum(c.population for c in countries.values())

    # Phase 1: adoption
    for country in countries.values():
        _reset_monthly_tracking(country)
        country.ai_adoption = _grow_adoption(country, model)

    # Phase 2: displaced wages become AI revenue, split by automated market cap
    wage_pool = sum(
        c.population * _monthly_wage(c) * c.ai_adoption * model.displacement_rate
        for c in countries.values()
    ) / 1000
    total_weight = sum(c.market_cap * c.ai_adoption_level for c in corps)

    for corp in corps:
        corp.customer_base_wellbeing = _customer_base_wellbeing(corp, countries)
        share = corp.market_cap * corp.ai_adoption_level / total_weight if total_weight > 0 else 0.0
        demand_factor = min(1.0, corp.customer_base_wellbeing / WELLBEING_BASELINE)
        reputation_multiplier = 0.85 + (corp.reputation_score / 100) * 0.30
        corp.ai_revenue = wage_pool * share * demand_factor * reputation_multiplier

    # Phase 3: contributions; anything without a recipient joins the global pool
    global_pool = 0.0
    for corp in corps:
        contribution = corp.ai_revenue * corp.contribution_rate
        ledger.contributor_breakdown[corp.id] = contribution
        ledger.monthly_inflow += contribution

        if corp.distribution_strategy == DistributionStrategy.CUSTOMER_WEIGHTED:
            routed = _distribute_customer_weighted(corp, contribution, countries)
        elif corp.distribution_strategy == DistributionStrategy.HQ_LOCAL:
            routed = _distribute_hq_local(corp, contribution, countries)
        else:
            routed = False
        if not routed:
            global_pool += contribution

        if contribution > 0:
            for cid in set(corp.operating_countries):
                if cid in countries:
                    countries[cid].companies_joined += 1

    ledger.total_funds = global_pool
    ledger.funds_per_capita = global_pool * 1000 / world_population if world_population > 0 else 0.0

    # Phase 4: payouts and wellbeing
    leakage = 0.0
    displacement_total = 0.0
    crisis_count = 0
    for cid, country in countries.items():
        if world_population > 0:
            country.ubi_received_global = global_pool * country.population / world_population
        received = (
            country.ubi_received_global
            + country.ubi_received_local
            + country.ubi_received_customer_weighted
        )
        country.total_ubi_received = received
        ledger.funds_by_country[cid] = received
        ledger.monthly_outflow += received

        delivered = received
        if not model.direct_to_wallet_enabled:
            lost_to_corruption = received * (1 - country.governance) * 0.3
            leakage += lost_to_corruption
            delivered -= lost_to_corruption

        per_capita = delivered * 1000 / country.population if country.population > 0 else 0.0
        target, gap_share = _wellbeing_target(country, per_capita, model)
        country.displacement_gap = gap_share * _monthly_wage(country)
        displacement_total += country.displacement_gap * country.population
        if gap_share > CRISIS_GAP_SHARE:
            crisis_count += 1

        country.wellbeing = _relax(country.wellbeing, target)
        country.wellbeing_trend = (country.wellbeing_trend + [country.wellbeing])[-TREND_WINDOW:]

    ledger.corruption_leakage = leakage

    # Counterfactual: slower adoption, no redistribution at all
    for shadow in shadows.values():
        shadow.ai_adoption = _grow_adoption(shadow, model, speed=0.5)
        shadow_target, _ = _wellbeing_target(shadow, 0.0, model)
        shadow.wellbeing = _relax(shadow.wellbeing, shadow_target)
        shadow.wellbeing_trend = (shadow.wellbeing_trend + [shadow.wellbeing])[-TREND_WINDOW:]

    average_wellbeing = (
        sum(c.wellbeing * c.population for c in countries.values()) / world_population
        if world_population > 0
        else WELLBEING_BASELINE
    )

    # Phase 5: adaptation, judged against last month's rates
    rates = {c.id: c.contribution_rate for c in corps}
    avg_rate = sum(rates.values()) / len(rates) if rates else 0.0
    for corp in corps:
        _adapt_to_demand(corp, countries, model, next_month)
        _respond_to_competitors(corp, corps, rates)
        _update_reputation(corp, avg_rate)

    # Phase 6: game theory
    game_theory = analyze_game_theory(corps)

    new_state = SimulationState(
        month=next_month,
        global_fund=state.global_fund + ledger.monthly_inflow,
        average_wellbeing=average_wellbeing,
        total_ai_companies=len(corps),
        country_data=countries,
        shadow_country_data=shadows,
        global_displacement_gap=displacement_total,
        corruption_leakage=leakage,
        countries_in_crisis=crisis_count,
    )

    logger.debug(
        "step month=%d inflow=%.3f outflow=%.3f avg_wellbeing=%.2f race_to_bottom=%.2f",
        next_month,
        ledger.monthly_inflow,
        ledger.monthly_outflow,
        average_wellbeing,
        game_theory.race_to_bottom_risk,
    )

    return SimulationOutput(
        state=new_state,
        corporations=corps,
        ledger=ledger,
        game_theory=game_theory,
    )
