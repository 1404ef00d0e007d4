"""
Whole-configuration validation.

Checks every top-level scalar of beranodes.config.json against the ordered
field rules, every element of `nodes[]` against the node checks, and every
element of `genesis_deposits[]` against the deposit checks.

Validation never stops early. Each failing field yields exactly one issue,
including fields inside node and deposit objects, so a document with N
independent problems produces a report with N entries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any

from beranode.exceptions import LoadError, ValidationError
from beranode.store import read_json, scalar_to_str

from . import validators as v
from .rules import classify

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One failing field."""

    location: str
    """Where the value lives, e.g. `wallet_address` or `nodes[0].moniker`."""

    rule: str
    """Name of the rule that rejected the value."""

    value: str
    """The offending value, as stored in the flattened view."""

    @property
    def message(self) -> str:
        """Human-readable one-line description."""
        return f"Field '{self.location}' failed {self.rule} validation: '{self.value}'"


@dataclass(slots=True)
class ValidationReport:
    """Outcome of validating one configuration document."""

    path: Path
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """Whether no issue was found."""
        return not self.issues

    def raise_for_issues(self) -> None:
        """
        Raise if any issue was found.

        Raises:
            ValidationError: Carrying every issue of the report.
        """
        if self.issues:
            raise ValidationError(self.issues)


_FieldCheck = tuple[str, str, Callable[[str], bool]]

_NODE_FIELDS: tuple[_FieldCheck, ...] = (
    ("role", "role", v.validate_role),
    ("moniker", "moniker", v.validate_moniker),
    ("network", "network", v.validate_network),
)

_NODE_KEY_FIELDS: tuple[_FieldCheck, ...] = (
    ("jwt", "jwt", v.validate_jwt),
    ("comet_address", "cometAddress", v.validate_comet_address),
    ("eth_beacon_pubkey", "pubkey", v.validate_pubkey),
)

_DEPOSIT_FIELDS: tuple[_FieldCheck, ...] = (
    ("pubkey", "pubkey", v.validate_pubkey),
    ("credentials", "hexString", v.validate_hex_string),
    ("amount", "hexString", v.validate_hex_string),
    ("signature", "hexString", v.validate_hex_string),
    ("index", "integer", v.validate_integer),
)


def _check_fields(
    obj: Mapping[str, Any],
    checks: tuple[_FieldCheck, ...],
    location: str,
) -> list[ValidationIssue]:
    issues = []
    for name, rule, check in checks:
        value = scalar_to_str(obj.get(name))
        if not check(value):
            issues.append(ValidationIssue(f"{location}.{name}", rule, value))
    return issues


def node_issues(
    node: Any, location: str = "node", *, provisioned: bool = True
) -> list[ValidationIssue]:
    """
    Collect every failing field of a node object.

    `role`, `moniker`, `network` and `ethrpc_port` are required and
    `wallet_address` may be empty. The `jwt`, `comet_address` and
    `eth_beacon_pubkey` of `beacond_config` are required too, unless
    `provisioned` is False. Then they are only checked if `beacond_config`
    exists, which lets a fresh `init` document pass before keys are generated.
    """
    if not isinstance(node, Mapping):
        return [ValidationIssue(location, "object", scalar_to_str(node))]

    issues = _check_fields(node, _NODE_FIELDS, location)

    wallet = scalar_to_str(node.get("wallet_address", ""))
    if not v.validate_optional_hex_address(wallet):
        issues.append(ValidationIssue(f"{location}.wallet_address", "hexAddress", wallet))

    port = scalar_to_str(node.get("ethrpc_port"))
    if not v.validate_port(port):
        issues.append(ValidationIssue(f"{location}.ethrpc_port", "port", port))

    beacond = node.get("beacond_config")
    if provisioned or isinstance(beacond, Mapping):
        keys = beacond if isinstance(beacond, Mapping) else {}
        issues.extend(_check_fields(keys, _NODE_KEY_FIELDS, f"{location}.beacond_config"))

    return issues


def deposit_issues(deposit: Any, location: str = "deposit") -> list[ValidationIssue]:
    """Collect every failing field of a genesis deposit object."""
    if not isinstance(deposit, Mapping):
        return [ValidationIssue(location, "object", scalar_to_str(deposit))]
    return _check_fields(deposit, _DEPOSIT_FIELDS, location)


def validate_node_object(node: Any, *, provisioned: bool = True) -> tuple[bool, list[str]]:
    """Validate a node object. Returns (valid, every error message)."""
    issues = node_issues(node, provisioned=provisioned)
    return not issues, [issue.message for issue in issues]


def validate_deposit_object(deposit: Any) -> tuple[bool, list[str]]:
    """Validate a genesis deposit object. Returns (valid, every error message)."""
    issues = deposit_issues(deposit)
    return not issues, [issue.message for issue in issues]


def validate_document(
    document: Any, path: Path | str = "<memory>", *, provisioned: bool = True
) -> ValidationReport:
    """
    Validate an already parsed configuration document.

    Args:
        document: Parsed beranodes.config.json contents.
        path: Recorded on the report for display.
        provisioned: Require generated node keys. Pass False for a document
            written by `init`.

    Raises:
        LoadError: If the document is not a JSON object.
    """
    path = Path(path)
    if not isinstance(document, Mapping):
        raise LoadError(path, "top-level JSON value is not an object")

    report = ValidationReport(path)

    for name, value in document.items():
        if isinstance(value, (Mapping, list)):
            continue
        text = scalar_to_str(value)
        rule = classify(name)
        if not rule.check(text):
            report.issues.append(ValidationIssue(name, rule.name, text))

    checks: tuple[tuple[str, Callable[[Any, str], list[ValidationIssue]]], ...] = (
        ("nodes", partial(node_issues, provisioned=provisioned)),
        ("genesis_deposits", deposit_issues),
    )
    for section, collect in checks:
        items = document.get(section)
        if not isinstance(items, list):
            continue
        for i, item in enumerate(items):
            report.issues.extend(collect(item, f"{section}[{i}]"))

    return report


def validate_config(path: Path | str, *, provisioned: bool = True) -> ValidationReport:
    """
    Validate a configuration file.

    Returns:
        A report listing every failing field. Use `raise_for_issues` to
        turn a failed report into a `ValidationError`.

    Raises:
        LoadError: If the file is missing or is not a JSON object.
    """
    path = Path(path)
    logger.info(f"Validating beranodes configuration: {path}")
    report = validate_document(read_json(path), path, provisioned=provisioned)

    for issue in report.issues:
        logger.error(issue.message)
    if report.passed:
        logger.info("All validations passed successfully")
    else:
        logger.error(f"Validation failed with {len(report.issues)} error(s)")
    return report
