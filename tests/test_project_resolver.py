"""
Tests for project id resolution from .tfvars files.
"""

from pathlib import Path

import pytest

from tfgcp.core.errors import WorkflowError
from tfgcp.core.models.settings import Settings
from tfgcp.core.services.project_resolver import (
    candidate_tfvars,
    find_tfvars_file_with_project_id,
    get_project_id,
    read_project_id,
)

PATTERNS = Settings().tfvars_patterns


class TestReadProjectId:
    def test_reads_quoted_value(self, tmp_path: Path):
        f = tmp_path / "a.tfvars"
        f.write_text('region = "x"\n  project_id  =  "acme-prod"\n')
        assert read_project_id(f) == "acme-prod"

    def test_ignores_similar_keys(self, tmp_path: Path):
        f = tmp_path / "a.tfvars"
        f.write_text('billing_project_id = "other"\n')
        assert read_project_id(f) is None

    def test_ignores_commented_line(self, tmp_path: Path):
        f = tmp_path / "a.tfvars"
        f.write_text('# project_id = "old"\n')
        assert read_project_id(f) is None


class TestCandidateOrder:
    def test_secrets_before_auto_before_rest(self, tmp_path: Path):
        for name in ("a.tfvars", "config.auto.tfvars", "env-secrets.tfvars"):
            (tmp_path / name).write_text("")
        names = [p.name for p in candidate_tfvars(tmp_path, PATTERNS)]
        assert names == ["env-secrets.tfvars", "config.auto.tfvars", "a.tfvars"]

    def test_no_duplicates(self, tmp_path: Path):
        (tmp_path / "x.auto.tfvars").write_text("")
        assert len(candidate_tfvars(tmp_path, PATTERNS)) == 1


class TestGetProjectId:
    def test_first_file_with_project_id_wins(self, tmp_path: Path):
        (tmp_path / "env-secrets.tfvars").write_text('token = "t"\n')
        (tmp_path / "config.auto.tfvars").write_text('project_id = "from-auto"\n')
        (tmp_path / "z.tfvars").write_text('project_id = "from-plain"\n')

        assert find_tfvars_file_with_project_id(tmp_path, PATTERNS).name == "config.auto.tfvars"
        assert get_project_id(tmp_path, PATTERNS) == "from-auto"

    def test_no_project_id_anywhere(self, tmp_path: Path):
        (tmp_path / "a.tfvars").write_text('region = "x"\n')
        with pytest.raises(WorkflowError, match="No tfvars files with project_id"):
            get_project_id(tmp_path, PATTERNS)

    def test_no_tfvars_files(self, tmp_path: Path):
        with pytest.raises(WorkflowError, match="No tfvars files"):
            get_project_id(tmp_path, PATTERNS)

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(WorkflowError, match="Terraform directory not found"):
            get_project_id(tmp_path / "missing", PATTERNS)
