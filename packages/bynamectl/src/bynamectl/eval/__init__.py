"""Adapters for the external evaluator and history oracle."""
from .history import FileHistory, HistoryOracle, HistoryStatus, NoHistory
from .loader import CommandEvaluator, Evaluator, FileEvaluator, attribute_map_from_payload
from .model import AttributeDefinition, AttributeMap, DefinitionShape, Location

__all__ = [
    "AttributeDefinition",
    "AttributeMap",
    "CommandEvaluator",
    "DefinitionShape",
    "Evaluator",
    "FileEvaluator",
    "FileHistory",
    "HistoryOracle",
    "HistoryStatus",
    "Location",
    "NoHistory",
    "attribute_map_from_payload",
]
