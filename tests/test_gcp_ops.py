"""
Unit tests for the gcloud / gsutil wrappers.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from tfgcp.core.errors import CommandError, WorkflowError
from tfgcp.core.services import gcp_ops

_GCLOUD = "tfgcp.core.services.gcp_ops._run_gcloud"
_GSUTIL = "tfgcp.core.services.gcp_ops._run_gsutil"


def _mock_result(stdout: str = "", stderr: str = "", rc: int = 0):
    return subprocess.CompletedProcess(args=["gcloud"], returncode=rc, stdout=stdout, stderr=stderr)


class TestLogin:
    def test_already_logged_in(self, fake_gcloud):
        assert gcp_ops.ensure_login() == {"user_login": False, "application_default": False}
        assert ["auth", "login"] not in fake_gcloud.calls

    def test_runs_missing_login_flows(self, fake_gcloud):
        fake_gcloud.logged_in = False
        fake_gcloud.adc = False
        assert gcp_ops.ensure_login() == {"user_login": True, "application_default": True}
        assert ["auth", "login"] in fake_gcloud.calls
        assert ["auth", "application-default", "login"] in fake_gcloud.calls

    def test_failed_login_raises(self):
        def gcloud(*args, timeout=None, capture=True):
            if args[:2] == ("auth", "list"):
                return _mock_result(stdout="")
            return _mock_result(rc=1, stderr="cancelled")

        with patch(_GCLOUD, side_effect=gcloud):
            with pytest.raises(CommandError, match="gcloud auth login failed"):
                gcp_ops.ensure_login()


class TestProject:
    def test_current_project(self, fake_gcloud):
        assert gcp_ops.current_project() == "some-other-project"

    @pytest.mark.parametrize("stdout", ["", "(unset)\n"])
    def test_current_project_unset(self, stdout):
        with patch(_GCLOUD, return_value=_mock_result(stdout=stdout)):
            assert gcp_ops.current_project() is None

    def test_set_project_changes(self, fake_gcloud):
        assert gcp_ops.set_project("acme-dev-1234") is True
        assert fake_gcloud.project == "acme-dev-1234"
        assert ["auth", "application-default", "set-quota-project", "acme-dev-1234"] in fake_gcloud.calls

    def test_set_project_already_active(self, fake_gcloud):
        fake_gcloud.project = "acme-dev-1234"
        assert gcp_ops.set_project("acme-dev-1234") is False
        assert not any(call[:2] == ["config", "set"] for call in fake_gcloud.calls)


class TestStorage:
    def test_list_buckets(self, fake_gcs):
        (fake_gcs.root / "other").mkdir()
        assert gcp_ops.list_buckets("acme") == ["1234-terraform-remote-backend", "other"]
        assert fake_gcs.calls[-1] == ["ls", "-p", "acme"]

    def test_find_buckets_substring(self, fake_gcs):
        (fake_gcs.root / "acme-tf-state-remote-backend").mkdir()
        (fake_gcs.root / "acme-logs").mkdir()
        matches = gcp_ops.find_buckets(["terraform-remote-backend", "tf-state-remote-backend"])
        assert matches == ["1234-terraform-remote-backend", "acme-tf-state-remote-backend"]

    def test_list_failure(self):
        with patch(_GSUTIL, return_value=_mock_result(rc=1, stderr="AccessDenied")):
            with pytest.raises(CommandError, match="AccessDenied"):
                gcp_ops.list_buckets("acme")

    def test_object_exists(self, fake_gcs, tmp_path: Path):
        src = tmp_path / "f.txt"
        src.write_text("x")
        gcp_ops.copy(src, "gs://b/dir/f.txt")
        assert gcp_ops.object_exists("gs://b/dir/f.txt") is True
        assert gcp_ops.object_exists("gs://b/dir/missing.txt") is False

    def test_copy_failure(self, fake_gcs, tmp_path: Path):
        with pytest.raises(CommandError, match="gsutil cp"):
            gcp_ops.copy("gs://b/none", tmp_path / "x")


class TestSubmitBuild:
    def test_missing_config(self, tmp_path: Path):
        with pytest.raises(WorkflowError, match="Cloud Build config not found"):
            gcp_ops.submit_build(
                config=tmp_path / "plan.cloudbuild.yaml",
                substitutions={},
                region="r",
                service_account="sa",
                log_dir="gs://l/plan",
                staging_dir="gs://s/plan",
                ignore_file=tmp_path / ".gcloudignore",
            )

    def test_args(self, tmp_path: Path):
        config = tmp_path / "apply.cloudbuild.yaml"
        config.write_text("steps: []\n")
        with patch(_GCLOUD, return_value=_mock_result()) as run:
            gcp_ops.submit_build(
                config=config,
                substitutions={"_GCP_ENV": "dev", "_TF_STATE_BUCKET_NAME": "b"},
                region="europe-west2",
                service_account="projects/p/serviceAccounts/sa@p",
                log_dir="gs://logs/apply",
                staging_dir="gs://src/apply",
                ignore_file=tmp_path / ".gcloudignore",
                source="gs://p-tf-plans/x/tfplan.tar.gz",
            )

        args = run.call_args.args
        assert args[:2] == ("builds", "submit")
        assert f"--config={config}" in args
        assert "--substitutions=_GCP_ENV=dev,_TF_STATE_BUCKET_NAME=b" in args
        assert args[-1] == "gs://p-tf-plans/x/tfplan.tar.gz"
        assert run.call_args.kwargs == {"timeout": None, "capture": False}
