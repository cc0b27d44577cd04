"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks every feature uses (DB pool wiring).
Feature-specific SQL and ranking logic live in their own packages
(e.g. `leaderboard/`, `streaks/`).
"""
