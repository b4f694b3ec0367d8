"""
Tests for homunculus install_hooks.py and cli.py
================================================
Covers: install (idempotent, preserves foreign hooks), remove, check,
        directory setup, CLI status / disable / enable / resolve
"""

import json
from unittest.mock import patch

import pytest

from homunculus import cli, counter, install_hooks


@pytest.fixture()
def settings_file(ctx):
    return install_hooks.settings_path(ctx)


def foreign_settings(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({
        "model": "sonnet",
        "hooks": {"PostToolUse": [{"matcher": "Edit", "hooks": [{"type": "command", "command": "prettier-hook"}]}]},
    }))


class TestInstall:

    def test_fresh_install(self, ctx, settings_file):
        result = install_hooks.install(ctx, python="python3")
        assert result["status"] == "installed"
        assert set(result["hook_types"]) == {"PreToolUse", "PostToolUse", "Stop"}
        settings = json.loads(settings_file.read_text())
        pre = settings["hooks"]["PreToolUse"][0]["hooks"][0]["command"]
        assert pre == "python3 -m homunculus.hooks.observe"
        stop = [h["command"] for h in settings["hooks"]["Stop"][0]["hooks"]]
        assert stop == [
            "python3 -m homunculus.hooks.session_end",
            "python3 -m homunculus.hooks.evaluate_session",
        ]

    def test_creates_state_layout(self, ctx):
        install_hooks.install(ctx, python="python3")
        assert (ctx.state_dir / "instincts" / "personal").is_dir()
        assert (ctx.state_dir / "instincts" / "inherited").is_dir()
        assert (ctx.state_dir / "observations.archive").is_dir()

    def test_idempotent(self, ctx, settings_file):
        install_hooks.install(ctx, python="python3")
        result = install_hooks.install(ctx, python="python3")
        assert result["status"] == "already_installed"
        settings = json.loads(settings_file.read_text())
        assert len(settings["hooks"]["PreToolUse"]) == 1

    def test_preserves_foreign_hooks(self, ctx, settings_file):
        foreign_settings(settings_file)
        install_hooks.install(ctx, python="python3")
        settings = json.loads(settings_file.read_text())
        assert settings["model"] == "sonnet"
        commands = [e["hooks"][0]["command"] for e in settings["hooks"]["PostToolUse"]]
        assert commands == ["prettier-hook", "python3 -m homunculus.hooks.observe"]

    def test_corrupt_settings_replaced(self, ctx, settings_file):
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        settings_file.write_text("{oops")
        assert install_hooks.install(ctx, python="python3")["status"] == "installed"


class TestRemoveAndCheck:

    def test_remove_keeps_foreign(self, ctx, settings_file):
        foreign_settings(settings_file)
        install_hooks.install(ctx, python="python3")
        result = install_hooks.remove(ctx)
        assert result["status"] == "removed"
        settings = json.loads(settings_file.read_text())
        assert list(settings["hooks"]) == ["PostToolUse"]
        assert settings["hooks"]["PostToolUse"][0]["hooks"][0]["command"] == "prettier-hook"

    def test_remove_when_absent(self, ctx):
        assert install_hooks.remove(ctx)["status"] == "not_installed"

    def test_check(self, ctx):
        assert install_hooks.check(ctx)["hooks_installed"] is False
        install_hooks.install(ctx, python="python3")
        status = install_hooks.check(ctx)
        assert status["hooks_installed"] is True
        assert all(status["directories"].values())


class TestCli:

    def _main(self, ctx, argv):
        with patch.object(cli.HookContext, "from_environment", return_value=ctx):
            return cli.main(argv)

    def test_help(self, ctx, capsys):
        assert self._main(ctx, []) == 0
        assert "python -m homunculus" in capsys.readouterr().out

    def test_unknown_command(self, ctx):
        assert self._main(ctx, ["frobnicate"]) == 1

    def test_status(self, ctx, log_path, fill_log, capsys):
        fill_log(log_path, 3)
        counter.increment(ctx, "sess-1")
        assert self._main(ctx, ["status"]) == 0
        out = capsys.readouterr().out
        assert "Observations:   3" in out
        assert "Session sess-1: 1 since last analysis" in out

    def test_status_shows_pending(self, ctx, capsys):
        ctx.ensure_state_dir()
        (ctx.state_dir / ".pending-analysis").write_text("2026-10-19T00:00:00Z\n25 observations pending analysis\n")
        self._main(ctx, ["status"])
        assert "25 observations pending analysis" in capsys.readouterr().out

    def test_status_with_empty_pending_marker(self, ctx, capsys):
        ctx.ensure_state_dir()
        (ctx.state_dir / ".pending-analysis").write_text("")
        assert self._main(ctx, ["status"]) == 0
        assert "Pending:" in capsys.readouterr().out

    def test_disable_enable(self, ctx):
        self._main(ctx, ["disable"])
        assert ctx.is_disabled()
        self._main(ctx, ["enable"])
        assert not ctx.is_disabled()

    def test_resolve(self, ctx, path_bins, capsys):
        path_bins["ruff"] = "/usr/bin/ruff"
        assert self._main(ctx, ["resolve", "ruff"]) == 0
        assert capsys.readouterr().out.strip() == "/usr/bin/ruff"

    def test_resolve_usage(self, ctx):
        assert self._main(ctx, ["resolve"]) == 1
