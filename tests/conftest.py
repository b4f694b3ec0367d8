"""Shared fixtures: every test gets its own home, state dir and temp dir."""

import json
import subprocess
from pathlib import Path

import pytest

from homunculus.context import HookContext


class FakeRunner:
    """Stands in for subprocess.run; records calls, replays scripted results."""

    def __init__(self):
        self.calls = []
        self.results = {}
        self.raises = {}

    def script(self, program, returncode=0, stdout="", stderr=""):
        self.results[program] = (returncode, stdout, stderr)

    def fail_with(self, program, exc):
        self.raises[program] = exc

    def __call__(self, cmd, **kwargs):
        self.calls.append((list(cmd), kwargs))
        program = Path(cmd[0]).name
        if program in self.raises:
            raise self.raises[program]
        if program not in self.results:
            raise FileNotFoundError(cmd[0])
        returncode, stdout, stderr = self.results[program]
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)


@pytest.fixture()
def runner():
    return FakeRunner()


@pytest.fixture()
def path_bins():
    """Mutable {name: path} map backing the context's PATH lookup."""
    return {}


@pytest.fixture()
def ctx(tmp_path, runner, path_bins):
    home = tmp_path / "home"
    home.mkdir()
    temp = tmp_path / "tmp"
    temp.mkdir()
    return HookContext(
        home=home,
        state_dir=home / ".claude" / "homunculus",
        temp_dir=temp,
        env={"CLAUDE_SESSION_ID": "sess-1"},
        which=path_bins.get,
        run=runner,
    )


@pytest.fixture()
def write_config(ctx):
    def _write(config):
        ctx.ensure_state_dir()
        ctx.config_path.write_text(json.dumps(config))
        return ctx.config_path
    return _write


@pytest.fixture()
def log_path(ctx):
    return ctx.state_dir / "observations.jsonl"


@pytest.fixture()
def fill_log():
    """Append n valid observation lines to a log."""
    def _fill(path, n):
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a") as f:
            for i in range(n):
                f.write(json.dumps({"event": "tool_start", "tool": "Edit", "session": "s", "n": i}) + "\n")
    return _fill
