from wagers.utils.rng import (
    RandomOutcomeProvider,
    ScriptedOutcomeProvider,
    SeededOutcomeProvider,
    SystemOutcomeProvider,
    build_outcome_provider,
)

__all__ = [
    "RandomOutcomeProvider",
    "ScriptedOutcomeProvider",
    "SeededOutcomeProvider",
    "SystemOutcomeProvider",
    "build_outcome_provider",
]
