"""
Shared fixtures: scripted steppers that stand in for the default stepper so
each assertion kind can be exercised in isolation.
"""

import pytest

from ubisim.models import GameTheoryState, GlobalLedger, SimulationOutput


@pytest.fixture
def make_stepper():
    """
    Return a factory for scripted steppers.

    The produced stepper advances the month, shifts every country's wellbeing
    (and the average) by `wellbeing_step`, reports `risks[i]` as the month-i
    race-to-bottom risk and the given ledger flows. Calls are recorded on
    `stepper.calls` as (month, corporations) pairs.
    """

    def factory(risks=None, wellbeing_step=0.0, inflow=0.0, outflow=0.0, avg_rate=None):
        calls = []

        def stepper(state, corporations, model):
            index = len(calls)
            calls.append((state.month, corporations))
            countries = {
                cid: c.model_copy(update={"wellbeing": c.wellbeing + wellbeing_step})
                for cid, c in state.country_data.items()
            }
            next_state = state.model_copy(update={
                "month": state.month + 1,
                "country_data": countries,
                "average_wellbeing": state.average_wellbeing + wellbeing_step,
            })
            rate = avg_rate
            if rate is None:
                rate = sum(c.contribution_rate for c in corporations) / len(corporations)
            risk = risks[index] if risks and index < len(risks) else 0.0
            return SimulationOutput(
                state=next_state,
                corporations=corporations,
                ledger=GlobalLedger(monthly_inflow=inflow, monthly_outflow=outflow),
                game_theory=GameTheoryState(
                    is_in_prisoners_dilemma=False,
                    defection_count=0,
                    cooperation_count=0,
                    moderate_count=0,
                    race_to_bottom_risk=risk,
                    virtuous_cycle_strength=0.0,
                    avg_contribution_rate=rate,
                ),
            )

        stepper.calls = calls
        return stepper

    return factory


@pytest.fixture
def failing_stepper():
    """A stepper that always raises."""

    def stepper(state, corporations, model):
        raise RuntimeError("stepper exploded")

    return stepper
