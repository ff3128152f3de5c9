"""Join diagnostics: explain why a join might fail or misbehave before running it."""

from join_diagnostics.core.analyzer import AnalysisOptions, analyze
from join_diagnostics.core.cardinality import Cardinality
from join_diagnostics.core.errors import (
    CardinalityViolationError,
    ColumnNotFoundError,
    InvalidInputError,
    JoinDiagnosticsError,
)
from join_diagnostics.core.issues import Issue, IssueKind, Severity, TableSide
from join_diagnostics.core.join_chain import analyze_join_chain
from join_diagnostics.core.join_explain import diff_tables, explain_join
from join_diagnostics.core.join_report import JoinReport
from join_diagnostics.core.key_check import key_check, key_duplicates
from join_diagnostics.core.keys import KeySpec
from join_diagnostics.core.repair import repair_keys, suggest_repairs
from join_diagnostics.core.strict_join import detect_cardinality, join_strict

__all__ = [
    "analyze",
    "analyze_join_chain",
    "AnalysisOptions",
    "Cardinality",
    "CardinalityViolationError",
    "ColumnNotFoundError",
    "detect_cardinality",
    "diff_tables",
    "explain_join",
    "InvalidInputError",
    "Issue",
    "IssueKind",
    "join_strict",
    "JoinDiagnosticsError",
    "JoinReport",
    "key_check",
    "key_duplicates",
    "KeySpec",
    "repair_keys",
    "Severity",
    "suggest_repairs",
    "TableSide",
]
