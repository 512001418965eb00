"""Tests for OCSF event classification."""

import pytest

from telenoise.actions import Category
from telenoise.audit.classify import FALLBACK, Classification, classify


@pytest.mark.unit
@pytest.mark.parametrize(
    ("category", "kind", "expected"),
    [
        ("network", "tcp_connect", (4001, 4, 1)),
        ("network", "tcp_listen", (4001, 4, 5)),
        ("network", "tcp_accept", (4001, 4, 1)),
        ("network", "http_get", (4002, 4, 1)),
        ("process", "http", (4002, 4, 1)),
        ("network", "dns_query", (4003, 4, 1)),
        ("file", "dns_lookup", (4003, 4, 1)),
        ("process", "process_spawn", (1007, 1, 1)),
        ("process", "terminate", (1007, 1, 2)),
        ("process", "kill_child", (1007, 1, 2)),
        ("process", "sigstop_sent", (1007, 1, 99)),
        ("process", "dylib_inject", (1007, 1, 99)),
        ("process", "whatever", (1007, 1, 1)),
        ("file", "read", (1001, 1, 4)),
        ("file", "file_delete", (1001, 1, 6)),
        ("file", "file_rename", (1001, 1, 5)),
        ("file", "file_write", (1001, 1, 3)),
        ("plist", "plist_modify", (1001, 1, 5)),
        ("file", "unknown", (1001, 1, 3)),
        ("endpoint_security", "es_file_open", (1001, 1, 4)),
        ("endpoint_security", "es_process_exec", (1007, 1, 1)),
        ("endpoint_security", "es_auth", (6003, 6, 99)),
        ("service", "launch_agent_install", (1006, 1, 1)),
        ("tcc", "contacts_access", (6003, 6, 99)),
        ("xpc", "xpc_connect", (6003, 6, 99)),
        ("bogus", "whatever", (6003, 6, 99)),
    ],
)
def test_classify_mapping(category: str, kind: str, expected: tuple[int, int, int]) -> None:
    """Test category/kind pairs map to the expected class, category, and activity."""
    c = classify(category, kind)

    assert (c.class_uid, c.category_uid, c.activity_id) == expected


@pytest.mark.unit
def test_classify_fallback_names() -> None:
    """Test unmapped input yields the API Activity fallback."""
    c = classify("bogus", "whatever")

    assert c == FALLBACK
    assert c.class_name == "API Activity"
    assert c.category_name == "Application Activity"
    assert c.activity_name == "Other"


@pytest.mark.unit
def test_classify_kind_rules_precede_category() -> None:
    """Test http/dns kinds win over any category mapping."""
    assert classify("file", "http_post").class_uid == 4002
    assert classify("service", "dns").class_uid == 4003


@pytest.mark.unit
def test_classify_http_prefix_requires_separator() -> None:
    """Test a kind merely starting with 'http' is not treated as HTTP."""
    assert classify("network", "httpd_probe").class_uid == 4001


@pytest.mark.unit
@pytest.mark.parametrize(("category", "kind"), [(None, None), ("", ""), (None, "tcp_connect"), ("network", None)])
def test_classify_is_total(category: object, kind: object) -> None:
    """Test None and empty inputs never raise."""
    assert isinstance(classify(category, kind), Classification)


@pytest.mark.unit
def test_classify_normalizes_case_and_enums() -> None:
    """Test inputs are lowercased and Category enums are accepted."""
    assert classify("NETWORK", "TCP_LISTEN").activity_id == 5
    assert classify(Category.PROCESS, "Kill").activity_id == 2


@pytest.mark.unit
def test_classify_is_deterministic() -> None:
    """Test repeated calls return equal classifications."""
    assert classify("file", "file_modify") == classify("file", "file_modify")


@pytest.mark.unit
def test_type_uid_and_name() -> None:
    """Test composite type id and name derivation."""
    c = classify("network", "tcp_listen")

    assert c.type_uid == 4001 * 100 + 5
    assert c.type_name == "Network Activity: Listen"
