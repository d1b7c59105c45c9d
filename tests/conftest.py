"""
Shared test fixtures and configuration.

The fakes below stand in for the ``terraform``, ``gcloud`` and ``gsutil``
subprocess helpers, so no real CLI or cloud project is needed. Cloud
Storage is a directory tree under ``tmp_path``.
"""

from __future__ import annotations

import shutil
import subprocess
import textwrap
from pathlib import Path

import pytest

from tfgcp.core.models.context import RunContext
from tfgcp.core.models.settings import Settings


def completed(args, stdout: str = "", stderr: str = "", rc: int = 0):
    """Create a subprocess.CompletedProcess."""
    return subprocess.CompletedProcess(args=list(args), returncode=rc, stdout=stdout, stderr=stderr)


# ═══════════════════════════════════════════════════════════════════
#  Fakes
# ═══════════════════════════════════════════════════════════════════


class FakeTerraform:
    """Records terraform calls and imitates their file effects.

    ``fail_on`` holds call keys that should exit 1: ``init``,
    ``init-migrate``, ``apply``, ``apply-plan``, ``plan``, ``show``.
    """

    def __init__(self):
        self.calls: list[dict] = []
        self.fail_on: set[str] = set()
        self.outputs: dict[str, str] = {}
        self.applied_plans: list[bytes] = []
        self._plans = 0

    @staticmethod
    def key(args: tuple[str, ...]) -> str:
        if args[0] == "init" and "-migrate-state" in args:
            return "init-migrate"
        if args[0] == "apply" and "-auto-approve" not in args:
            return "apply-plan"
        return args[0]

    def keys(self) -> list[str]:
        return [c["key"] for c in self.calls]

    def __call__(self, *args, cwd, env=None, timeout=None, capture=False):
        key = self.key(args)
        self.calls.append({
            "key": key, "args": list(args), "cwd": Path(cwd),
            "cwd_existed": Path(cwd).is_dir(), "env": dict(env or {}),
            "files": sorted(p.name for p in Path(cwd).iterdir()) if Path(cwd).is_dir() else [],
        })
        if key in self.fail_on:
            return completed(["terraform", *args], stderr=f"{key} failed", rc=1)

        cwd = Path(cwd)
        if key == "apply":
            (cwd / "terraform.tfstate").write_text('{"version": 4, "bootstrap": true}\n')
        elif key == "plan":
            out = args[args.index("-out") + 1]
            self._plans += 1
            (cwd / out).write_bytes(f"binary-plan-{self._plans}".encode())
        elif key == "show":
            return completed(["terraform", *args], stdout="Plan: 1 to add, 0 to change, 0 to destroy.\n")
        elif key == "apply-plan":
            self.applied_plans.append((cwd / args[-1]).read_bytes())
        elif key == "output":
            return completed(["terraform", *args], stdout=self.outputs.get(args[-1], ""))
        return completed(["terraform", *args])


class FakeGcloud:
    """A gcloud with a logged-in user and a switchable active project."""

    def __init__(self, project: str | None = "some-other-project"):
        self.project = project
        self.calls: list[list[str]] = []
        self.logged_in = True
        self.adc = True

    def __call__(self, *args, timeout=None, capture=True):
        self.calls.append(list(args))
        cmd = ["gcloud", *args]
        if args[:2] == ("auth", "list"):
            return completed(cmd, stdout="me@example.com\n" if self.logged_in else "")
        if args[:3] == ("auth", "application-default", "print-access-token"):
            return completed(cmd, stdout="token", rc=0 if self.adc else 1)
        if args[:2] == ("auth", "login"):
            self.logged_in = True
            return completed(cmd)
        if args[:3] == ("auth", "application-default", "login"):
            self.adc = True
            return completed(cmd)
        if args[:3] == ("config", "get-value", "project"):
            return completed(cmd, stdout=f"{self.project or ''}\n")
        if args[:3] == ("config", "set", "project"):
            self.project = args[3]
            return completed(cmd)
        return completed(cmd)


class FakeGsutil:
    """gsutil over a local directory: gs://bucket/key -> root/bucket/key."""

    def __init__(self, root: Path, buckets: list[str] | None = None):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self.calls: list[list[str]] = []
        for name in buckets or []:
            (self.root / name).mkdir(parents=True, exist_ok=True)

    def local(self, url: str) -> Path:
        return self.root / url[len("gs://"):]

    def __call__(self, *args, timeout=None):
        self.calls.append(list(args))
        cmd = ["gsutil", *args]
        if args[0] == "ls" and (len(args) == 1 or args[1] == "-p"):
            names = sorted(p.name for p in self.root.iterdir() if p.is_dir())
            return completed(cmd, stdout="".join(f"gs://{n}/\n" for n in names))
        if args[0] == "ls":
            target = self.local(args[1])
            if target.exists():
                return completed(cmd, stdout=f"{args[1]}\n")
            return completed(cmd, stderr="CommandException: One or more URLs matched no objects.", rc=1)
        if args[0] == "cp":
            src, dst = args[1], args[2]
            src_path = self.local(src) if src.startswith("gs://") else Path(src)
            dst_path = self.local(dst) if dst.startswith("gs://") else Path(dst)
            if not src_path.is_file():
                return completed(cmd, stderr="No URLs matched", rc=1)
            dst_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src_path, dst_path)
            return completed(cmd)
        return completed(cmd, rc=1)


# ═══════════════════════════════════════════════════════════════════
#  Fixtures
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project root with terraform/dev holding tfvars and bootstrap files."""
    root = tmp_path / "repo"
    work = root / "terraform" / "dev"
    work.mkdir(parents=True)
    (work / "config.auto.tfvars").write_text(textwrap.dedent("""\
        project_id = "acme-dev-1234"
        region     = "europe-west2"
    """))
    (work / "setup.tf").write_text('resource "google_storage_bucket" "state" {}\n')
    (work / "providers.tf").write_text('provider "google" {}\n')
    (work / "variables.tf").write_text('variable "project_id" {}\n')
    (work / "main.tf").write_text("# main\n")
    return root


@pytest.fixture
def work_dir(project_dir: Path) -> Path:
    return project_dir / "terraform" / "dev"


@pytest.fixture
def run_ctx(project_dir: Path, work_dir: Path) -> RunContext:
    return RunContext(
        environment="dev",
        project_id="acme-dev-1234",
        root=project_dir,
        work_dir=work_dir,
    )


@pytest.fixture
def fake_terraform(monkeypatch) -> FakeTerraform:
    fake = FakeTerraform()
    monkeypatch.setattr("tfgcp.core.services.terraform_ops._run_terraform", fake)
    return fake


@pytest.fixture
def fake_gcloud(monkeypatch) -> FakeGcloud:
    fake = FakeGcloud()
    monkeypatch.setattr("tfgcp.core.services.gcp_ops._run_gcloud", fake)
    return fake


@pytest.fixture
def fake_gcs(monkeypatch, tmp_path: Path) -> FakeGsutil:
    fake = FakeGsutil(tmp_path / "gcs", buckets=["1234-terraform-remote-backend"])
    monkeypatch.setattr("tfgcp.core.services.gcp_ops._run_gsutil", fake)
    return fake


@pytest.fixture
def all_commands_installed(monkeypatch):
    monkeypatch.setattr(
        "tfgcp.adapters.shell.command.shutil.which", lambda name: f"/usr/bin/{name}",
    )


class Answers:
    """A confirmation stub that answers from a list and records prompts."""

    def __init__(self, *answers: bool):
        self.answers = list(answers)
        self.prompts: list[list[str]] = []

    def __call__(self, lines):
        self.prompts.append(list(lines))
        return self.answers.pop(0) if self.answers else True


@pytest.fixture
def always_yes() -> Answers:
    return Answers()


@pytest.fixture
def answers():
    """Factory for scripted confirmation answers: ``answers(False)``."""
    return Answers
