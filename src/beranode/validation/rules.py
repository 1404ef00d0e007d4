"""
Ordered field-name rules.

A configuration field's semantic type is decided by its name alone. The
name is matched against each rule's glob patterns in order and the first
matching rule wins.

Order matters. Free-form fields such as `*_grpc_address` or `*_tls_*_file`
must be tried before the broad `*_address` and `*_file` rules, and specific
integer windows must come after the duration catch-alls that would
otherwise claim them. The table is plain data so that order and coverage
can be inspected and tested on their own.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from fnmatch import fnmatchcase

from . import validators as v


@dataclass(frozen=True, slots=True)
class FieldRule:
    """A named semantic check bound to a set of field-name globs."""

    name: str
    """Rule identifier reported alongside failures."""

    patterns: tuple[str, ...]
    """Shell-style globs. Matching is case-sensitive."""

    check: Callable[[str], bool]
    """Validator applied to the stringified value."""

    def matches(self, field: str) -> bool:
        """Whether any pattern matches the field name."""
        return any(fnmatchcase(field, pattern) for pattern in self.patterns)


FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule(
        "optional",
        (
            "*_keyring_default_keyname",
            "*_graffiti",
            "*_cors_*",
            "*_wal_dir",
            "*_external_address",
            "*_seeds",
            "*_persistent_peers",
            "*_global_labels",
            "*_metrics_sink",
            "*_statsd_addr",
            "*_chain_spec_file",
            "*_priv_validator_laddr",
            "*_tls_*_file",
            "*_pprof_laddr",
            "*_grpc_*_laddr",
            "*_unconditional_peer_ids",
            "*_private_peer_ids",
            "*_rpc_servers",
            "*_trust_hash",
            "*_temp_dir",
            "*_psql_conn",
            "*_grpc_address",
        ),
        v.validate_optional,
    ),
    FieldRule(
        "boolean",
        (
            "skip_genesis",
            "force",
            "*_enabled",
            "*_strict",
            "*_unsafe",
            "*_close_on_slow_client",
            "*_keep_invalid_txs_in_cache",
            "*_inter_block_cache",
            "*_cache",
            "*_broadcast",
            "*_recheck",
            "*_pex",
            "*_seed_mode",
            "*_disable_fastnode",
            "*_addr_book_strict",
            "*_allow_duplicate_ip",
            "*_logging",
            "apptoml_telemetry_enabled",
            "apptoml_telemetry_enable_hostname",
            "apptoml_telemetry_enable_hostname_label",
            "apptoml_telemetry_enable_service_label",
            "*_skip_timeout_commit",
            "*_create_empty_blocks",
            "*_discard_abci_responses",
            "*_compact",
            "configtoml_instrumentation_prometheus",
            "configtoml_statesync_enable",
            "configtoml_rpc_unsafe",
            "configtoml_filter_peers",
            "*_pruning_*_enabled",
            "*_service_enabled",
        ),
        v.validate_boolean,
    ),
    FieldRule("moniker", ("moniker", "configtoml_moniker"), v.validate_moniker),
    FieldRule("network", ("network", "apptoml_beacon_kit_chain_spec"), v.validate_network),
    FieldRule(
        "integer",
        ("validators", "full_nodes", "pruned_nodes", "total_nodes"),
        v.validate_integer,
    ),
    FieldRule(
        "path",
        ("beranode_dir", "genesis_file", "genesis_eth_file", "*_path", "*_file", "*_dir"),
        v.validate_path,
    ),
    FieldRule("mode", ("mode",), v.validate_mode),
    FieldRule("hexPrivateKey", ("wallet_private_key",), v.validate_hex_private_key),
    FieldRule("hexAddress", ("wallet_address",), v.validate_optional_hex_address),
    FieldRule("amount", ("wallet_balance", "deposit_amount"), v.validate_hex_or_integer),
    FieldRule("hexString", ("validator_root",), v.validate_hex_string),
    FieldRule("hexAddress", ("*_suggested_fee_recipient",), v.validate_hex_address),
    FieldRule(
        "port",
        (
            "*_port",
            "*ethrpc_port",
            "*ethp2p_port",
            "*ethproxy_port",
            "*authrpc_port",
            "*eth_port",
            "*prometheus_port",
        ),
        v.validate_port,
    ),
    FieldRule("address", ("*_dial_url", "*_laddr", "*_address"), v.validate_listen_address),
    FieldRule(
        "duration",
        (
            "*_timeout",
            "*_period",
            "apptoml_beacon_kit_shutdown_timeout",
            "apptoml_beacon_kit_engine_rpc_*",
            "apptoml_beacon_kit_payload_builder_payload_timeout",
            "configtoml_p2p_persistent_peers_max_dial_period",
            "configtoml_p2p_flush_throttle_timeout",
            "configtoml_p2p_handshake_timeout",
            "configtoml_p2p_dial_timeout",
            "configtoml_mempool_recheck_timeout",
            "configtoml_statesync_trust_period",
            "configtoml_statesync_discovery_time",
            "configtoml_statesync_chunk_request_timeout",
            "configtoml_consensus_timeout_*",
            "configtoml_consensus_peer_*_duration",
            "configtoml_storage_pruning_interval",
        ),
        v.validate_duration,
    ),
    FieldRule(
        "integer",
        (
            "configtoml_storage_compaction_interval",
            "apptoml_pruning_interval",
            "*_pruning_keep_recent",
            "*_availability_window",
        ),
        v.validate_integer,
    ),
    FieldRule("chainId", ("*chain_id",), v.validate_string),
    FieldRule(
        "integer",
        (
            "*_height",
            "*_retain_*",
            "*_max_*",
            "*_keep_*",
            "apptoml_halt_*",
            "apptoml_min_*",
            "apptoml_iavl_cache_size",
            "apptoml_telemetry_prometheus_retention_time",
            "configtoml_*_buffer_size",
            "configtoml_*_batch_size",
            "configtoml_*_body_bytes",
            "configtoml_*_header_bytes",
            "configtoml_mempool_size",
            "configtoml_mempool_max_tx_bytes",
            "configtoml_mempool_max_txs_bytes",
            "configtoml_mempool_cache_size",
            "configtoml_mempool_experimental_*",
            "configtoml_*_send_rate",
            "configtoml_*_recv_rate",
            "configtoml_*_num_*_peers",
            "configtoml_*_packet_*",
            "configtoml_instrumentation_max_open_connections",
            "configtoml_statesync_trust_height",
            "configtoml_statesync_chunk_fetchers",
            "configtoml_consensus_double_sign_check_height",
            "configtoml_*_pruning_*_retain_height",
        ),
        v.validate_integer,
    ),
    FieldRule(
        "string",
        ("*_backend", "*_db_backend", "*_type", "*_implementation", "*_indexer", "*_abci"),
        v.validate_string,
    ),
    FieldRule("string", ("*_version",), v.validate_string),
    FieldRule(
        "string",
        (
            "*_log_level",
            "*_log_format",
            "*_style",
            "*_output",
            "*_time_format",
            "*_service_name",
            "apptoml_telemetry_datadog_hostname",
            "*_namespace",
            "*_experimental_db_key_layout",
        ),
        v.validate_string,
    ),
    FieldRule("string", ("*",), v.validate_string),
)
"""Every rule, in evaluation order. The last rule matches any name."""


def classify(field: str, rules: tuple[FieldRule, ...] = FIELD_RULES) -> FieldRule:
    """
    Return the first rule whose patterns match `field`.

    The default table ends with a catch-all, so a rule is always found.
    """
    for rule in rules:
        if rule.matches(field):
            return rule
    raise LookupError(f"no validation rule matches field {field!r}")


def validate_field(field: str, value: str) -> bool:
    """Validate a single top-level configuration field by name."""
    return classify(field).check(value)
