"""
Baseline World Definition Module

This module defines the fixed baseline the anchor tests start from:
- build_baseline_countries() -> list[CountryStats]: 43 countries
- build_baseline_corporations() -> list[Corporation]: 10 AI corporations
- POOR_COUNTRY_IDS: the eight designated low-income countries

Builders construct new objects on every call, so a scenario can change what
it receives without affecting any other run.
"""

from .models import CountryStats, Corporation, DistributionStrategy, PolicyStance

# Low-income countries compared across distribution strategies.
POOR_COUNTRY_IDS: tuple[str, ...] = ("HTI", "AFG", "YEM", "ETH", "COD", "SYR", "PRK", "TJK")

# (id, name, population millions, GDP per capita USD, gini, governance)
_COUNTRY_ROWS: tuple[tuple[str, str, float, float, float, float], ...] = (
    # North America
    ("USA", "United States", 331, 63000, 0.41, 0.80),
    ("CAN", "Canada", 38, 43000, 0.33, 0.90),
    ("MEX", "Mexico", 128, 8300, 0.45, 0.40),
    # Europe
    ("GBR", "United Kingdom", 67, 41000, 0.35, 0.85),
    ("FRA", "France", 67, 39000, 0.32, 0.80),
    ("DEU", "Germany", 83, 46000, 0.31, 0.88),
    ("ITA", "Italy", 60, 31000, 0.35, 0.65),
    ("ESP", "Spain", 47, 27000, 0.34, 0.72),
    ("NOR", "Norway", 5, 67000, 0.27, 0.95),
    ("CHE", "Switzerland", 8, 86000, 0.33, 0.95),
    ("POL", "Poland", 38, 15600, 0.30, 0.70),
    ("UKR", "Ukraine", 44, 3700, 0.26, 0.35),
    # Asia
    ("CHN", "China", 1400, 12500, 0.38, 0.45),
    ("IND", "India", 1380, 2100, 0.35, 0.50),
    ("JPN", "Japan", 125, 40000, 0.33, 0.85),
    ("KOR", "South Korea", 51, 31000, 0.31, 0.80),
    ("VNM", "Vietnam", 97, 2700, 0.36, 0.45),
    ("IDN", "Indonesia", 273, 3800, 0.38, 0.50),
    ("PAK", "Pakistan", 220, 1100, 0.30, 0.30),
    ("BGD", "Bangladesh", 164, 1900, 0.32, 0.35),
    ("PHL", "Philippines", 109, 3200, 0.42, 0.45),
    ("TUR", "Turkey", 84, 8500, 0.42, 0.45),
    ("RUS", "Russia", 144, 10000, 0.36, 0.30),
    ("TJK", "Tajikistan", 10, 900, 0.34, 0.20),
    ("PRK", "North Korea", 26, 600, 0.30, 0.05),
    ("AFG", "Afghanistan", 39, 500, 0.31, 0.10),
    # Middle East
    ("SAU", "Saudi Arabia", 34, 20000, 0.46, 0.55),
    ("IRN", "Iran", 83, 5400, 0.42, 0.30),
    ("ISR", "Israel", 9, 43000, 0.39, 0.78),
    ("SYR", "Syria", 18, 900, 0.38, 0.08),
    ("YEM", "Yemen", 30, 700, 0.37, 0.08),
    # Africa
    ("NGA", "Nigeria", 206, 2000, 0.35, 0.30),
    ("ZAF", "South Africa", 59, 5000, 0.63, 0.50),
    ("EGY", "Egypt", 102, 3500, 0.32, 0.35),
    ("ETH", "Ethiopia", 114, 850, 0.35, 0.30),
    ("KEN", "Kenya", 53, 1800, 0.41, 0.40),
    ("COD", "DR Congo", 89, 550, 0.42, 0.12),
    # Caribbean, South America & Oceania
    ("HTI", "Haiti", 11, 1300, 0.41, 0.15),
    ("BRA", "Brazil", 212, 6700, 0.53, 0.50),
    ("ARG", "Argentina", 45, 8400, 0.42, 0.50),
    ("COL", "Colombia", 51, 5300, 0.51, 0.50),
    ("AUS", "Australia", 25, 51000, 0.34, 0.90),
    ("NZL", "New Zealand", 5, 42000, 0.33, 0.93),
)

# Markets most corporations sell into.
_GLOBAL_MARKETS = [
    "USA", "CAN", "GBR", "FRA", "DEU", "JPN", "KOR", "CHN", "IND", "BRA", "MEX", "IDN", "AUS",
]


def build_baseline_countries() -> list[CountryStats]:
    """
    Build the baseline country list.

    Dynamic fields (adoption, wellbeing, UBI tracking) carry model defaults;
    the Scenario Builder resets them to the anchor-test starting point.

    Returns:
        A new list of new CountryStats objects
    """
    return [
        CountryStats(
            id=country_id,
            name=name,
            population=population,
            gdp_per_capita=gdp,
            gini=gini,
            governance=governance,
        )
        for country_id, name, population, gdp, gini, governance in _COUNTRY_ROWS
    ]


def build_baseline_corporations() -> list[Corporation]:
    """
    Build the ten baseline AI corporations.

    Policies are deliberately mixed (generous, moderate and selfish; all three
    distribution strategies) so that un-overridden scenarios exercise every
    routing path.

    Returns:
        A new list of new Corporation objects
    """
    return [
        Corporation(
            id="C1",
            name="Nimbus Intelligence",
            headquarters_country="USA",
            operating_countries=list(_GLOBAL_MARKETS),
            ai_adoption_level=0.75,
            market_cap=2800,
            contribution_rate=0.15,
            distribution_strategy=DistributionStrategy.GLOBAL,
            policy_stance=PolicyStance.MODERATE,
            reputation_score=65,
        ),
        Corporation(
            id="C2",
            name="Cascade Systems",
            headquarters_country="USA",
            operating_countries=["USA", "CAN", "MEX", "GBR", "DEU", "FRA", "JPN", "AUS", "BRA"],
            ai_adoption_level=0.70,
            market_cap=2400,
            contribution_rate=0.08,
            distribution_strategy=DistributionStrategy.HQ_LOCAL,
            policy_stance=PolicyStance.SELFISH,
            reputation_score=55,
        ),
        Corporation(
            id="C3",
            name="Helix Compute",
            headquarters_country="USA",
            operating_countries=list(_GLOBAL_MARKETS) + ["NGA", "ZAF", "EGY", "KEN"],
            ai_adoption_level=0.80,
            market_cap=1900,
            contribution_rate=0.25,
            distribution_strategy=DistributionStrategy.GLOBAL,
            policy_stance=PolicyStance.GENEROUS,
            reputation_score=75,
        ),
        Corporation(
            id="C4",
            name="Longwei Data",
            headquarters_country="CHN",
            operating_countries=["CHN", "IDN", "VNM", "PAK", "BGD", "NGA", "ETH", "RUS"],
            ai_adoption_level=0.65,
            market_cap=1600,
            contribution_rate=0.10,
            distribution_strategy=DistributionStrategy.HQ_LOCAL,
            policy_stance=PolicyStance.SELFISH,
            reputation_score=50,
        ),
        Corporation(
            id="C5",
            name="Tianhe Robotics",
            headquarters_country="CHN",
            operating_countries=["CHN", "IND", "IDN", "PHL", "VNM", "BRA", "TUR"],
            ai_adoption_level=0.60,
            market_cap=900,
            contribution_rate=0.12,
            distribution_strategy=DistributionStrategy.CUSTOMER_WEIGHTED,
            policy_stance=PolicyStance.MODERATE,
            reputation_score=52,
        ),
        Corporation(
            id="C6",
            name="Hanbit Semiconductor",
            headquarters_country="KOR",
            operating_countries=["KOR", "JPN", "CHN", "USA", "IND", "VNM"],
            ai_adoption_level=0.70,
            market_cap=700,
            contribution_rate=0.12,
            distribution_strategy=DistributionStrategy.CUSTOMER_WEIGHTED,
            policy_stance=PolicyStance.MODERATE,
            reputation_score=60,
        ),
        Corporation(
            id="C7",
            name="Kairo Automation",
            headquarters_country="JPN",
            operating_countries=["JPN", "KOR", "USA", "IDN", "PHL", "AUS", "NZL"],
            ai_adoption_level=0.55,
            market_cap=600,
            contribution_rate=0.18,
            distribution_strategy=DistributionStrategy.GLOBAL,
            policy_stance=PolicyStance.MODERATE,
            reputation_score=62,
        ),
        Corporation(
            id="C8",
            name="Rheinwerk AI",
            headquarters_country="DEU",
            operating_countries=["DEU", "FRA", "ITA", "ESP", "POL", "NOR", "CHE", "GBR", "TUR", "UKR"],
            ai_adoption_level=0.50,
            market_cap=500,
            contribution_rate=0.30,
            distribution_strategy=DistributionStrategy.GLOBAL,
            policy_stance=PolicyStance.GENEROUS,
            reputation_score=72,
        ),
        Corporation(
            id="C9",
            name="Albion Cognitive",
            headquarters_country="GBR",
            operating_countries=["GBR", "USA", "CAN", "AUS", "NZL", "IND", "ZAF", "KEN", "NGA", "ISR"],
            ai_adoption_level=0.60,
            market_cap=450,
            contribution_rate=0.20,
            distribution_strategy=DistributionStrategy.CUSTOMER_WEIGHTED,
            policy_stance=PolicyStance.MODERATE,
            reputation_score=58,
        ),
        Corporation(
            id="C10",
            name="Vasco Digital",
            headquarters_country="FRA",
            operating_countries=["FRA", "ESP", "ITA", "BRA", "ARG", "COL", "MEX", "EGY", "SAU", "IRN"],
            ai_adoption_level=0.45,
            market_cap=350,
            contribution_rate=0.05,
            distribution_strategy=DistributionStrategy.HQ_LOCAL,
            policy_stance=PolicyStance.SELFISH,
            reputation_score=45,
        ),
    ]
