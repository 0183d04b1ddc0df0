from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from ip_quorum.config import DnsResolverSpec, ExhaustionPolicy, HttpResolverSpec, QuorumConfig
from ip_quorum.dns_resolvers import DEFAULT_DNS_RESOLVERS
from ip_quorum.errors import ConfigError
from ip_quorum.http_resolvers import DEFAULT_HTTP_RESOLVERS
from ip_quorum.loader import load_pool_config, parse_pool_config


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "pools.yaml"
    path.write_text(dedent(text), encoding="utf-8")
    return path


def test_full_configuration_is_loaded(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        quorum:
          timeout_s: 10
          on_exhausted: raise
          allow_empty_winner: false
          fail_fast: true
          max_concurrency: 4
        dns:
          - name: google
            qname: o-o.myaddr.l.google.com.
            rdtype: txt
            server: ns1.google.com
            timeout_s: 1.5
        http:
          - https://icanhazip.com
          - url: https://api.ipify.org/
            name: ipify
            timeout_s: 5
        """,
    )

    pool = load_pool_config(path)

    assert pool.quorum == QuorumConfig(
        timeout_s=10.0,
        on_exhausted=ExhaustionPolicy.RAISE,
        allow_empty_winner=False,
        fail_fast=True,
        max_concurrency=4,
    )
    assert pool.dns == (
        DnsResolverSpec(
            name="google",
            qname="o-o.myaddr.l.google.com.",
            rdtype="TXT",
            server="ns1.google.com",
            timeout_s=1.5,
        ),
    )
    assert pool.http == (
        HttpResolverSpec(url="https://icanhazip.com"),
        HttpResolverSpec(url="https://api.ipify.org/", name="ipify", timeout_s=5.0),
    )


def test_missing_pools_fall_back_to_defaults(tmp_path: Path) -> None:
    pool = load_pool_config(_write(tmp_path, "quorum:\n  timeout_s: 3\n"))

    assert pool.dns == DEFAULT_DNS_RESOLVERS
    assert pool.http == DEFAULT_HTTP_RESOLVERS
    assert pool.quorum.on_exhausted is ExhaustionPolicy.EMPTY


def test_empty_file_selects_defaults(tmp_path: Path) -> None:
    pool = load_pool_config(_write(tmp_path, ""))

    assert pool.quorum == QuorumConfig()
    assert len(pool.http) == 18


def test_explicit_empty_list_disables_pool() -> None:
    pool = parse_pool_config({"dns": []})

    assert pool.dns == ()
    assert pool.http == DEFAULT_HTTP_RESOLVERS


def test_invalid_record_type_is_reported_with_location() -> None:
    data = {"dns": [{"name": "x", "qname": "x.example.", "rdtype": "MX", "server": "ns.example"}]}

    with pytest.raises(ConfigError) as excinfo:
        parse_pool_config(data, source="inline")

    message = str(excinfo.value)
    assert "inline" in message
    assert "dns.0.rdtype" in message


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError) as excinfo:
        parse_pool_config({"quorum": {"retries": 3}})

    assert "quorum.retries" in str(excinfo.value)


def test_invalid_exhaustion_policy_is_rejected() -> None:
    with pytest.raises(ConfigError):
        parse_pool_config({"quorum": {"on_exhausted": "hang"}})


def test_non_mapping_document_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_pool_config(_write(tmp_path, "- just\n- a list\n"))


def test_broken_yaml_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_pool_config(_write(tmp_path, "quorum: [unclosed\n"))


def test_missing_file_is_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_pool_config(tmp_path / "absent.yaml")


def test_quorum_config_coerces_policy_strings() -> None:
    config = QuorumConfig(on_exhausted="raise")  # type: ignore[arg-type]

    assert config.on_exhausted is ExhaustionPolicy.RAISE
    with pytest.raises(ValueError):
        QuorumConfig(timeout_s=-1)
