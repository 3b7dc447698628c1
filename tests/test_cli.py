"""Tests for the rolesync command line."""

import tempfile
from pathlib import Path

import yaml
from click.testing import CliRunner

from rolesync.audit import AuditLogger
from rolesync.cli import main
from rolesync.rbac.models import AUTO_UPDATE_ANNOTATION_KEY, PolicyRule, Role
from rolesync.store.local_store import LocalRoleStore


def _write_roles(tmpdir: str, *roles: dict) -> str:
    path = Path(tmpdir) / "roles.yaml"
    with open(path, "w") as f:
        yaml.safe_dump_all(list(roles), f)
    return str(path)


def _role_doc(name: str = "pod-reader", verbs=("get", "list")) -> dict:
    return {
        "metadata": {"name": name},
        "rules": [{"apiGroups": [""], "resources": ["pods"], "verbs": list(verbs)}],
    }


def _invoke(*args):
    return CliRunner().invoke(main, list(args), catch_exceptions=False)


def test_reconcile_dry_run_does_not_write():
    with tempfile.TemporaryDirectory() as tmpdir:
        store_dir = str(Path(tmpdir) / "store")
        role_file = _write_roles(tmpdir, _role_doc())

        result = _invoke("reconcile", role_file, "--store-dir", store_dir, "--audit-dir", tmpdir)
        assert result.exit_code == 0
        assert "pod-reader" in result.output
        assert LocalRoleStore(store_dir).list_roles() == []


def test_reconcile_confirm_creates_and_audits():
    with tempfile.TemporaryDirectory() as tmpdir:
        store_dir = str(Path(tmpdir) / "store")
        audit_dir = str(Path(tmpdir) / "audit")
        role_file = _write_roles(tmpdir, _role_doc("a"), _role_doc("b"))

        result = _invoke(
            "reconcile", role_file, "--store-dir", store_dir, "--audit-dir", audit_dir, "--confirm"
        )
        assert result.exit_code == 0

        names = [r.name for r in LocalRoleStore(store_dir).list_roles()]
        assert names == ["a", "b"]
        assert [e.operation for e in AuditLogger(audit_dir).get_entries()] == ["create", "create"]

        # Converged: a second run writes nothing new
        result = _invoke(
            "reconcile", role_file, "--store-dir", store_dir, "--audit-dir", audit_dir, "--confirm"
        )
        assert result.exit_code == 0
        assert len(AuditLogger(audit_dir).get_entries()) == 2


def test_reconcile_strict_flag():
    with tempfile.TemporaryDirectory() as tmpdir:
        store_dir = str(Path(tmpdir) / "store")
        LocalRoleStore(store_dir).create(
            Role(
                name="pod-reader",
                rules=[
                    PolicyRule(verbs=["get"], api_groups=[""], resources=["pods"]),
                    PolicyRule(verbs=["delete"], api_groups=[""], resources=["secrets"]),
                ],
            )
        )
        role_file = _write_roles(tmpdir, _role_doc(verbs=["get"]))

        result = _invoke(
            "reconcile", role_file, "--store-dir", store_dir, "--audit-dir", tmpdir,
            "--confirm", "--remove-extra-permissions",
        )
        assert result.exit_code == 0
        stored = LocalRoleStore(store_dir).get("pod-reader")
        assert [r.resources for r in stored.rules] == [["pods"]]


def test_reconcile_skips_protected_role():
    with tempfile.TemporaryDirectory() as tmpdir:
        store_dir = str(Path(tmpdir) / "store")
        LocalRoleStore(store_dir).create(
            Role(name="pod-reader", annotations={AUTO_UPDATE_ANNOTATION_KEY: "false"})
        )
        role_file = _write_roles(tmpdir, _role_doc())

        result = _invoke("reconcile", role_file, "--store-dir", store_dir, "--audit-dir", tmpdir, "--confirm")
        assert result.exit_code == 0
        stored = LocalRoleStore(store_dir).get("pod-reader")
        assert stored.rules == []
        assert stored.resource_version == "1"


def test_reconcile_bad_file_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "roles.yaml"
        path.write_text("metadata: {}\n")

        result = _invoke("reconcile", str(path), "--store-dir", str(Path(tmpdir) / "store"))
        assert result.exit_code == 1


def test_get_and_list():
    with tempfile.TemporaryDirectory() as tmpdir:
        store_dir = str(Path(tmpdir) / "store")
        LocalRoleStore(store_dir).create(Role(name="viewer", labels={"team": "core"}))

        result = _invoke("get", "viewer", "--store-dir", store_dir)
        assert result.exit_code == 0
        data = yaml.safe_load(result.stdout)
        assert data["metadata"]["name"] == "viewer"
        assert data["metadata"]["labels"] == {"team": "core"}

        result = _invoke("list", "--store-dir", store_dir)
        assert result.exit_code == 0
        assert "viewer" in result.output


def test_get_missing_role_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke("get", "nope", "--store-dir", str(Path(tmpdir) / "store"))
        assert result.exit_code == 1


def test_reconcile_lists_missing_and_extra_rules():
    with tempfile.TemporaryDirectory() as tmpdir:
        store_dir = str(Path(tmpdir) / "store")
        LocalRoleStore(store_dir).create(
            Role(
                name="pod-reader",
                rules=[
                    PolicyRule(verbs=["get"], api_groups=[""], resources=["pods"]),
                    PolicyRule(verbs=["delete"], api_groups=[""], resources=["secrets"]),
                ],
            )
        )
        role_file = _write_roles(tmpdir, _role_doc())

        result = _invoke("reconcile", role_file, "--store-dir", store_dir)
        assert result.exit_code == 0
        assert "pod-reader: update (+1 missing, 1 extra)" in result.output
        assert "+ list pods" in result.output
        assert "delete secrets" in result.output


def test_corrupt_store_fails_cleanly():
    with tempfile.TemporaryDirectory() as tmpdir:
        store_dir = Path(tmpdir) / "store"
        store_dir.mkdir()
        (store_dir / LocalRoleStore.INDEX_FILE).write_text("{not json")
        role_file = _write_roles(tmpdir, _role_doc())

        for args in (
            ["list", "--store-dir", str(store_dir)],
            ["get", "viewer", "--store-dir", str(store_dir)],
            ["reconcile", role_file, "--store-dir", str(store_dir)],
        ):
            result = _invoke(*args)
            assert result.exit_code == 1
            assert "corrupt role index" in result.output
