"""Field validators, the ordered rule table and whole-config reports."""

from .report import (
    ValidationIssue,
    ValidationReport,
    deposit_issues,
    node_issues,
    validate_config,
    validate_deposit_object,
    validate_document,
    validate_node_object,
)
from .rules import FIELD_RULES, FieldRule, classify, validate_field

__all__ = [
    "FIELD_RULES",
    "FieldRule",
    "ValidationIssue",
    "ValidationReport",
    "classify",
    "deposit_issues",
    "node_issues",
    "validate_config",
    "validate_deposit_object",
    "validate_document",
    "validate_field",
    "validate_node_object",
]
