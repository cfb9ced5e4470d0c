"""Shared type aliases for the core and domain layers."""
from typing import Literal, Union

VariableKind = Literal["boolean", "number", "string"]
ConditionOperator = Literal["==", "!=", ">", "<", ">=", "<="]
EffectOperation = Literal["set", "add", "subtract", "toggle"]
WeightPolicy = Literal["uniform", "weighted"]
Severity = Literal["error", "warning"]
ConflictKind = Literal["unreachable", "dead_end", "contradictory"]

# Literal values carried by conditions, effects and variables.
RuleValue = Union[bool, int, float, str, None]

__all__ = [
    "ConditionOperator",
    "ConflictKind",
    "EffectOperation",
    "RuleValue",
    "Severity",
    "VariableKind",
    "WeightPolicy",
]
