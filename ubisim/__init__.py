"""
UBI transition simulator: anchor-test validation engine.

Runs a fixed battery of causal and accounting invariants against a
deterministic month-by-month economic simulation and decides whether a
user-authored model is eligible for the leaderboard.
"""
