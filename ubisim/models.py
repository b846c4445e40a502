"""
Core data models for the UBI transition simulator.

These models define the domain objects used throughout the system:
- World state (countries, corporations, model parameters)
- Per-month simulation output (state, ledger, game-theory indicators)
- Anchor test declarations and their results
- User-authored model configurations and the full validation verdict
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================

class PolicyStance(str, Enum):
    """Corporate stance toward contributing to the fund."""
    GENEROUS = "generous"
    MODERATE = "moderate"
    SELFISH = "selfish"


class DistributionStrategy(str, Enum):
    """Where a corporation routes its contributions."""
    GLOBAL = "global"                        # equal per capita worldwide
    CUSTOMER_WEIGHTED = "customer-weighted"  # by population of operating countries
    HQ_LOCAL = "hq-local"                    # headquarters country only


class DefaultCorpPolicy(str, Enum):
    """Default stance label a model assigns to corporations."""
    FREE_MARKET = "free-market"
    SELFISH_START = "selfish-start"
    ALTRUISTIC_START = "altruistic-start"
    MIXED_REALITY = "mixed-reality"


class AnchorCategory(str, Enum):
    """Kind of law an anchor test encodes."""
    CAUSAL = "causal"
    EQUILIBRIUM = "equilibrium"
    CONSISTENCY = "consistency"


class AssertionType(str, Enum):
    """Assertion kinds understood by the evaluator."""
    WELLBEING_DELTA = "wellbeingDelta"
    THRESHOLD = "threshold"
    COMPARISON = "comparison"
    CONSERVATION = "conservation"
    GAME_THEORY = "gameTheory"


class ThresholdMetric(str, Enum):
    """Quantity a THRESHOLD assertion compares."""
    WELLBEING_RATIO = "wellbeingRatio"      # final / initial average wellbeing
    CONTRIBUTION_RATE = "contributionRate"  # terminal avg contribution vs initial rate


class ComparisonOperator(str, Enum):
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    EQ = "=="
    WITHIN = "within"


class ProgressStatus(str, Enum):
    """Status reported to progress callbacks during incremental runs."""
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class StageStatus(str, Enum):
    """Status of a single validation pipeline stage.

    - SUCCESS: Stage ran to completion
    - FAILED: Stage raised before completing
    - SKIPPED: Stage was not run (e.g., Tier 2 after a Tier 1 failure)
    """
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


# =============================================================================
# WORLD STATE
# =============================================================================

class CountryStats(BaseModel):
    """Per-country record. Countries receive UBI; they do not set policy."""
    id: str = Field(..., description="ISO-3 country code, e.g. 'USA'")
    name: str = Field(..., description="Human-readable country name")
    population: float = Field(..., description="Population in millions")
    gdp_per_capita: float = Field(..., description="GDP per capita in USD/year")
    gini: float = Field(..., description="Inequality coefficient (0.2-0.7)")
    governance: float = Field(..., description="Institutional quality (0-1)")
    ai_adoption: float = Field(default=0.1, description="AI adoption fraction (0-1)")
    wellbeing: float = Field(default=70.0, description="Wellbeing score (1-100)")
    companies_joined: int = Field(default=0, description="Companies that joined the fund here")
    displacement_gap: float = Field(default=0.0, description="Uncovered lost wage per capita (USD/month)")
    ubi_received_global: float = Field(default=0.0, description="From the global pool (billions USD)")
    ubi_received_local: float = Field(default=0.0, description="From HQ-local corporations (billions USD)")
    ubi_received_customer_weighted: float = Field(
        default=0.0, description="From customer-weighted corporations (billions USD)"
    )
    total_ubi_received: float = Field(default=0.0, description="Total received this month (billions USD)")
    wellbeing_trend: list[float] = Field(default_factory=list, description="Rolling last-6-month wellbeing")


class Corporation(BaseModel):
    """An AI corporation that decides its own contribution policy."""
    id: str = Field(..., description="Unique corporation ID")
    name: str = Field(..., description="Human-readable name")
    headquarters_country: str = Field(..., description="ISO-3 code of the HQ country")
    operating_countries: list[str] = Field(..., description="ISO-3 codes of customer markets")
    ai_adoption_level: float = Field(..., description="How automated the corporation is (0-1)")
    market_cap: float = Field(..., description="Company size in billions USD")
    ai_revenue: float = Field(default=0.0, description="AI revenue this month (billions USD)")
    contribution_rate: float = Field(..., description="Fraction of AI revenue sent to the fund (0-1)")
    distribution_strategy: DistributionStrategy = Field(..., description="Routing policy for contributions")
    policy_stance: PolicyStance = Field(..., description="Current stance")
    reputation_score: float = Field(default=50.0, description="Public reputation (0-100)")
    last_policy_change: Optional[int] = Field(default=None, description="Month of last adaptive change")
    customer_base_wellbeing: Optional[float] = Field(default=None, description="Avg wellbeing of customers")
    projected_demand_collapse: Optional[float] = Field(default=None, description="Projected demand drop (0-1)")


class ModelParameters(BaseModel):
    """Simulation-tunable constants; immutable for the duration of a run."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Model identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="Free-text description")
    corporate_tax_rate: float
    adoption_incentive: float
    base_ubi: float
    ai_growth_rate: float
    volatility: float
    gdp_scaling: float = Field(..., description="0 = flat UBI utility, 1 = strongly GDP-skewed")
    global_redistribution_rate: float
    displacement_rate: float = Field(..., description="Labor income displaced at 100% adoption")
    direct_to_wallet_enabled: bool = Field(..., description="Payouts bypass corruption when True")
    default_corp_policy: DefaultCorpPolicy = DefaultCorpPolicy.MIXED_REALITY
    market_pressure: float = Field(..., description="How strongly demand drives corporate decisions (0-1)")


class SimulationState(BaseModel):
    """Snapshot of the world at the end of a month. Replaced, never patched."""
    month: int = Field(..., description="Months elapsed")
    global_fund: float = Field(..., description="Cumulative money routed through the fund (billions USD)")
    average_wellbeing: float = Field(..., description="Population-weighted average wellbeing")
    total_ai_companies: int
    country_data: dict[str, CountryStats]
    shadow_country_data: dict[str, CountryStats] = Field(
        ..., description="Counterfactual countries evolving without redistribution"
    )
    global_displacement_gap: float = 0.0
    corruption_leakage: float = 0.0
    countries_in_crisis: int = 0


class GlobalLedger(BaseModel):
    """Fund bookkeeping for a single month."""
    total_funds: float = 0.0
    monthly_inflow: float = 0.0
    monthly_outflow: float = 0.0
    funds_per_capita: float = Field(default=0.0, description="Global pool per person (USD/month)")
    funds_by_country: dict[str, float] = Field(default_factory=dict)
    contributor_breakdown: dict[str, float] = Field(default_factory=dict)
    corruption_leakage: float = 0.0


class GameTheoryState(BaseModel):
    """Prisoner's-dilemma indicators across corporations."""
    is_in_prisoners_dilemma: bool
    defection_count: int
    cooperation_count: int
    moderate_count: int
    race_to_bottom_risk: float = Field(..., description="0-1, closeness to mass defection")
    virtuous_cycle_strength: float = Field(..., description="0-1, strength of cooperation")
    avg_contribution_rate: float


class SimulationOutput(BaseModel):
    """Result of one stepper call."""
    state: SimulationState
    corporations: list[Corporation]
    ledger: GlobalLedger
    game_theory: GameTheoryState


# =============================================================================
# ANCHOR TESTS
# =============================================================================

class AnchorTestSetup(BaseModel):
    """Sparse scenario overrides; unset fields fall back to baseline values."""
    model_config = ConfigDict(frozen=True)

    displacement_rate: Optional[float] = None
    all_corps_contribution_rate: Optional[float] = None
    all_corps_policy_stance: Optional[PolicyStance] = None
    distribution_strategy: Optional[DistributionStrategy] = None
    market_pressure: Optional[float] = None
    compare_strategies: Optional[tuple[DistributionStrategy, ...]] = Field(
        default=None, description="Strategies to compare; marks a comparison test"
    )
    any_valid_configuration: bool = False


class AnchorTestAssertion(BaseModel):
    """What an anchor test checks."""
    model_config = ConfigDict(frozen=True)

    type: AssertionType
    operator: Optional[ComparisonOperator] = None
    value: Optional[float] = None
    tolerance: Optional[float] = None
    metric: Optional[ThresholdMetric] = Field(
        default=None, description="Selects the THRESHOLD variant"
    )


class AnchorTest(BaseModel):
    """Declarative invariant test run against the simulation."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable identifier, e.g. 'AT-1'")
    name: str
    category: AnchorCategory
    description: str
    simulation_months: int = Field(..., ge=0)
    setup: AnchorTestSetup
    assertion: AnchorTestAssertion


class AnchorTestDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    expected: str
    actual: str
    metrics: dict[str, float] = Field(default_factory=dict)


class AnchorTestResult(BaseModel):
    """Outcome of evaluating one anchor test."""
    model_config = ConfigDict(frozen=True)

    test_id: str
    test_name: str
    category: AnchorCategory
    passed: bool
    reason: str = Field(..., description="Human-readable explanation")
    details: Optional[AnchorTestDetails] = None
    error: Optional[str] = Field(default=None, description="Underlying error message if execution faulted")


class AnchorTestSuiteResult(BaseModel):
    """Aggregate of a suite run; rebuilt on every run."""
    passed: int
    total: int
    results: list[AnchorTestResult] = Field(default_factory=list)
    tier2_passed: bool = Field(..., description="True if passed >= the eligibility minimum")


class TestRunProgress(BaseModel):
    """Progress update sent to callbacks during an incremental run."""
    __test__ = False  # keep pytest from collecting this class

    current_test: int
    total_tests: int
    current_test_name: str
    status: ProgressStatus
    results: list[AnchorTestResult] = Field(default_factory=list)


class AnchorTestDescription(BaseModel):
    id: str
    name: str
    category: AnchorCategory
    description: str
    months: int


class CategoryTally(BaseModel):
    passed: int = 0
    total: int = 0


# =============================================================================
# USER-AUTHORED MODELS & VALIDATION
# =============================================================================

class ParameterConfig(BaseModel):
    """One tunable parameter of a user-authored model."""
    name: str
    min: float
    max: float
    default: float
    description: str = ""
    unit: Optional[str] = None


class EquationSet(BaseModel):
    """Equations defining a user-authored model (expression strings)."""
    ai_adoption_growth: Optional[str] = None
    surplus_generation: Optional[str] = None
    wellbeing_delta: Optional[str] = None
    displacement_friction: Optional[str] = None
    ubi_utility: Optional[str] = None

    demand_collapse: Optional[str] = None
    reputation_change: Optional[str] = None
    gini_damping: Optional[str] = None


class ModelMetadata(BaseModel):
    author: str
    version: str
    created_at: str = ""
    description: str = ""
    overrides_standard_causality: bool = False
    justification: Optional[str] = None
    tags: list[str] = Field(default_factory=list)


class ModelConfig(BaseModel):
    """A user-uploadable economic model configuration."""
    id: str
    name: str
    description: str = ""
    parameters: list[ParameterConfig] = Field(default_factory=list)
    equations: EquationSet = Field(default_factory=EquationSet)
    metadata: ModelMetadata


class Tier1Failure(BaseModel):
    """A structural (Tier 1) validation failure."""
    test_id: str
    test_name: str = ""
    reason: str
    expected: Optional[str] = None
    actual: Optional[str] = None


class Tier1Result(BaseModel):
    passed: bool
    failures: list[Tier1Failure] = Field(default_factory=list)


class ComplexityTier(str, Enum):
    """Display bucket for a complexity score (lower is simpler)."""
    MINIMAL = "minimal"
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    VERY_COMPLEX = "very-complex"


class ComplexityBreakdown(BaseModel):
    """Component scores and raw counts behind a complexity score."""
    total: int
    parameter_score: int
    equation_length_score: int
    operation_score: int
    nesting_score: int
    optional_equation_score: int

    parameter_count: int
    total_equation_length: int
    total_operations: int
    max_nesting_depth: int
    optional_equations_used: int


class PipelineStageRecord(BaseModel):
    """Record of a single stage in the validation pipeline."""
    id: str = Field(..., description="Stage identifier, e.g. 'T1', 'T2'")
    name: str = Field(..., description="Human-readable stage name")
    status: StageStatus
    summary: dict[str, Any] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)


class FullValidationResult(BaseModel):
    """Verdict of the two-tier validation pipeline."""
    tier1: Tier1Result
    tier2: AnchorTestSuiteResult
    complexity: float = Field(..., description="Lower is simpler; always computed")
    complexity_tier: ComplexityTier = Field(..., description="Display bucket for the complexity score")
    eligible: bool
    summary: str
    stages: list[PipelineStageRecord] = Field(default_factory=list)
