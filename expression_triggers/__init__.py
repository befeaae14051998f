"""
Expression Triggers Package

Facial-expression driven command triggers: scoring, hold/cooldown
debouncing and a persisted expression -> command mapping.
"""

__version__ = "0.1.0"

from expression_triggers.readings import ExpressionReading, HeuristicResult, ScoredExpression
from expression_triggers.scorer import ExpressionScorer
from expression_triggers.state_machine import (
    ExpressionTimingState,
    TriggerEvent,
    TriggerStateMachine,
    resolve_config,
)
from expression_triggers.store import DEFAULT_TRIGGERS, ConfigurationStore, TriggerConfig
from expression_triggers.storage import JsonFileStorage, MemoryStorage
from expression_triggers.dispatch import CommandDispatcher, SimulatedAssistant
from expression_triggers.engine import ExpressionTriggerEngine
from expression_triggers.config import EngineSettings, load_settings, save_settings

__all__ = [
    "ExpressionReading",
    "HeuristicResult",
    "ScoredExpression",
    "ExpressionScorer",
    "ExpressionTimingState",
    "TriggerEvent",
    "TriggerStateMachine",
    "resolve_config",
    "DEFAULT_TRIGGERS",
    "ConfigurationStore",
    "TriggerConfig",
    "JsonFileStorage",
    "MemoryStorage",
    "CommandDispatcher",
    "SimulatedAssistant",
    "ExpressionTriggerEngine",
    "EngineSettings",
    "load_settings",
    "save_settings",
]
