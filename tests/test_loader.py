"""Tests for loading desired roles from YAML."""

import tempfile
from pathlib import Path

import pytest
import yaml

from rolesync.errors import RoleFormatError
from rolesync.loader import dump_role, load_roles
from rolesync.rbac.models import PolicyRule

ROLES_YAML = """\
apiVersion: rbac.authorization.k8s.io/v1
kind: ClusterRole
metadata:
  name: pod-reader
  labels:
    team: core
rules:
  - apiGroups: [""]
    resources: ["pods"]
    verbs: ["get", "list"]
---
---
kind: ClusterRole
metadata:
  name: health-checker
  annotations: {}
rules:
  - nonResourceURLs: ["/healthz"]
    verbs: ["get"]
"""


def _write(tmpdir: str, content: str) -> Path:
    path = Path(tmpdir) / "roles.yaml"
    path.write_text(content)
    return path


def test_load_multiple_documents():
    with tempfile.TemporaryDirectory() as tmpdir:
        roles = load_roles(_write(tmpdir, ROLES_YAML))

    assert [r.name for r in roles] == ["pod-reader", "health-checker"]
    assert roles[0].labels == {"team": "core"}
    assert roles[0].annotations is None
    assert roles[0].rules == [PolicyRule(verbs=["get", "list"], api_groups=[""], resources=["pods"])]
    assert roles[1].annotations == {}
    assert roles[1].rules[0].non_resource_urls == ["/healthz"]


def test_load_invalid_yaml():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(RoleFormatError, match="invalid YAML"):
            load_roles(_write(tmpdir, "metadata: [unclosed"))


def test_load_reports_document_number():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write(tmpdir, "metadata: {name: ok}\n---\nmetadata: {}\n")
        with pytest.raises(RoleFormatError, match="document 2"):
            load_roles(path)


def test_load_empty_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert load_roles(_write(tmpdir, "")) == []


def test_dump_role_is_loadable():
    with tempfile.TemporaryDirectory() as tmpdir:
        role = load_roles(_write(tmpdir, ROLES_YAML))[0]
        data = yaml.safe_load(dump_role(role))

    assert data["metadata"]["name"] == "pod-reader"
    assert data["rules"][0]["verbs"] == ["get", "list"]


def test_load_unquoted_autoupdate_false_is_rejected():
    content = (
        "metadata:\n"
        "  name: pinned\n"
        "  annotations:\n"
        "    rbac.authorization.kubernetes.io/autoupdate: false\n"
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(RoleFormatError, match="quote it"):
            load_roles(_write(tmpdir, content))


def test_load_quoted_autoupdate_false_is_protected():
    content = (
        "metadata:\n"
        "  name: pinned\n"
        "  annotations:\n"
        "    rbac.authorization.kubernetes.io/autoupdate: \"false\"\n"
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        assert load_roles(_write(tmpdir, content))[0].protected
