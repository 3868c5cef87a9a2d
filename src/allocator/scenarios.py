# src/allocator/scenarios.py
"""
Scenario parameterization.
Maps a scenario code (0-3) and the user-chosen competition depth to the
simulation switches used by the allocation engine.
"""

import logging

from .models import Scenario, ScenarioParams
from .empirical_params import MIN_COMPETITION_DEPTH, MAX_COMPETITION_DEPTH, DEFAULT_COMPETITION_DEPTH

logger = logging.getLogger(__name__)


SCENARIO_DESCRIPTIONS = {
    Scenario.CURRENT_STATE: "Current allocation state",
    Scenario.REMAINING_USERS_RESPOND: "If the remaining users submitted",
    Scenario.SPECIFIC_DESTINATIONS_OCCUPIED: "If specific destinations were occupied",
    Scenario.PREFERENCE_DEPTH_BLOCKING: "Top {depth} preference(s) of users above blocked",
}


def resolve_scenario(code) -> Scenario:
    """Resolve a scenario code, falling back to the current state for unknown codes."""
    if isinstance(code, Scenario):
        return code
    try:
        return Scenario(code)
    except ValueError:
        logger.debug(f"Unknown scenario code {code!r}, using {Scenario.CURRENT_STATE.name}")
        return Scenario.CURRENT_STATE


def get_scenario_params(scenario, user_competition_depth: int = DEFAULT_COMPETITION_DEPTH) -> ScenarioParams:
    """
    Convert a scenario code into simulation parameters.

    Only the preference-depth scenario uses the competition depth; it affects
    backup lists, never primary assignments.
    """
    resolved = resolve_scenario(scenario)

    if resolved == Scenario.REMAINING_USERS_RESPOND:
        return ScenarioParams(
            scenario=resolved,
            include_fake_users=True,
            description=SCENARIO_DESCRIPTIONS[resolved]
        )

    if resolved == Scenario.SPECIFIC_DESTINATIONS_OCCUPIED:
        return ScenarioParams(
            scenario=resolved,
            mark_specific_items_unavailable=True,
            description=SCENARIO_DESCRIPTIONS[resolved]
        )

    if resolved == Scenario.PREFERENCE_DEPTH_BLOCKING:
        depth = max(0, int(user_competition_depth))
        return ScenarioParams(
            scenario=resolved,
            competition_depth=depth,
            description=SCENARIO_DESCRIPTIONS[resolved].format(depth=depth)
        )

    return ScenarioParams(
        scenario=Scenario.CURRENT_STATE,
        description=SCENARIO_DESCRIPTIONS[Scenario.CURRENT_STATE]
    )


def clamp_competition_depth(value: int) -> int:
    """Clamp a caller-supplied competition depth to the supported range."""
    return max(MIN_COMPETITION_DEPTH, min(MAX_COMPETITION_DEPTH, int(value)))
