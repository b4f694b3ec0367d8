"""
Tests for homunculus hooks: session_end.py and evaluate_session.py
==================================================================
Covers the end-to-end analysis scenarios:
  - below threshold: skip, no archive
  - no analyzer on PATH: pending marker, no archive, counter kept
  - analyzer exits 0: processed-* archive, counter reset
  - analyzer fails / times out: still archived and reset
and the transcript-length session evaluator.
"""

import subprocess
from unittest.mock import patch

import pytest

from homunculus import counter, store
from homunculus.hooks import evaluate_session, session_end
from homunculus.hooks.session_end import AnalysisOutcome


@pytest.fixture()
def seeded(ctx, log_path, fill_log):
    fill_log(log_path, 25)
    for _ in range(25):
        counter.increment(ctx, "sess-1")
    return log_path


class TestMaybeAnalyze:

    def test_empty_log_skips(self, ctx, log_path, caplog):
        with caplog.at_level("INFO", logger="homunculus"):
            assert session_end.maybe_analyze(ctx) is AnalysisOutcome.SKIPPED
        assert "0 observations (need 20) - skipping analysis" in caplog.text
        assert store.list_archives(log_path) == []

    def test_below_configured_threshold(self, ctx, log_path, fill_log, write_config):
        write_config({"observer": {"min_observations_to_analyze": 30}})
        fill_log(log_path, 25)
        assert session_end.maybe_analyze(ctx) is AnalysisOutcome.SKIPPED
        assert log_path.exists()

    def test_non_finite_threshold_uses_default(self, ctx, log_path, fill_log, write_config):
        write_config({"observer": {"min_observations_to_analyze": float("inf")}})
        fill_log(log_path, 5)
        assert session_end.maybe_analyze(ctx) is AnalysisOutcome.SKIPPED

    def test_no_analyzer_writes_pending_marker(self, ctx, seeded, runner):
        assert session_end.maybe_analyze(ctx) is AnalysisOutcome.DEFERRED
        marker = ctx.state_dir / ".pending-analysis"
        lines = marker.read_text().splitlines()
        assert lines[1] == "25 observations pending analysis"
        assert seeded.exists()
        assert store.list_archives(seeded) == []
        assert counter.get(ctx, "sess-1") == 25
        assert runner.calls == []

    def test_analyzer_success_archives_and_resets(self, ctx, seeded, runner, path_bins):
        path_bins["claude"] = "/usr/bin/claude"
        runner.script("claude", returncode=0)
        assert session_end.maybe_analyze(ctx) is AnalysisOutcome.ANALYZED
        assert not seeded.exists()
        archives = store.list_archives(seeded)
        assert len(archives) == 1
        assert archives[0].name.startswith("processed-")
        assert counter.get(ctx, "sess-1") == 0

    def test_analyzer_invocation(self, ctx, seeded, runner, path_bins):
        path_bins["claude"] = "/usr/bin/claude"
        runner.script("claude")
        session_end.maybe_analyze(ctx)
        cmd, kwargs = runner.calls[0]
        assert cmd[:6] == ["/usr/bin/claude", "--model", "haiku", "--max-turns", "3", "--print"]
        prompt = cmd[6]
        assert str(seeded) in prompt
        assert str(ctx.state_dir / "instincts" / "personal") in prompt
        assert "3+ occurrences" in prompt
        assert kwargs["timeout"] == 120

    def test_analyzer_failure_still_archives(self, ctx, seeded, runner, path_bins, caplog):
        path_bins["claude"] = "/usr/bin/claude"
        runner.script("claude", returncode=1, stderr="model overloaded")
        with caplog.at_level("INFO", logger="homunculus"):
            assert session_end.maybe_analyze(ctx) is AnalysisOutcome.ANALYZER_FAILED
        assert "model overloaded" in caplog.text
        assert not seeded.exists()
        assert counter.get(ctx, "sess-1") == 0

    def test_analyzer_timeout_still_archives(self, ctx, seeded, runner, path_bins):
        path_bins["claude"] = "/usr/bin/claude"
        runner.fail_with("claude", subprocess.TimeoutExpired("claude", 120))
        assert session_end.maybe_analyze(ctx) is AnalysisOutcome.ANALYZER_FAILED
        assert not seeded.exists()

    def test_reset_uses_default_session_when_unset(self, ctx, log_path, fill_log, runner, path_bins):
        ctx.env = {}
        fill_log(log_path, 20)
        counter.increment(ctx, "default")
        path_bins["claude"] = "/usr/bin/claude"
        runner.script("claude")
        session_end.maybe_analyze(ctx)
        assert counter.get(ctx, "default") == 0

    def test_disabled(self, ctx, seeded):
        ctx.disabled_marker.touch()
        assert session_end.maybe_analyze(ctx) is AnalysisOutcome.DISABLED
        assert seeded.exists()

    def test_main_exits_zero_on_error(self, ctx):
        with patch.object(session_end.HookContext, "from_environment", return_value=ctx), \
             patch.object(session_end, "configure_logging"), \
             patch.object(session_end, "maybe_analyze", side_effect=RuntimeError("boom")):
            with pytest.raises(SystemExit) as exc:
                session_end.main()
        assert exc.value.code == 0


class TestEvaluateSession:

    def _transcript(self, tmp_path, users):
        lines = ['{"type":"user","text":"hi"}'] * users + ['{"type":"assistant"}'] * 3
        p = tmp_path / "transcript.jsonl"
        p.write_text("\n".join(lines))
        return p

    def test_no_transcript(self, ctx):
        assert evaluate_session.evaluate(ctx) is None

    def test_missing_transcript_file(self, ctx, tmp_path):
        ctx.env = {"CLAUDE_TRANSCRIPT_PATH": str(tmp_path / "gone.jsonl")}
        assert evaluate_session.evaluate(ctx) is None

    def test_short_session(self, ctx, tmp_path, caplog):
        ctx.env = {"CLAUDE_TRANSCRIPT_PATH": str(self._transcript(tmp_path, 4))}
        with caplog.at_level("INFO", logger="homunculus"):
            assert evaluate_session.evaluate(ctx) is None
        assert "Session too short (4 messages)" in caplog.text

    def test_long_session(self, ctx, tmp_path, caplog):
        ctx.env = {"CLAUDE_TRANSCRIPT_PATH": str(self._transcript(tmp_path, 12))}
        with caplog.at_level("INFO", logger="homunculus"):
            assert evaluate_session.evaluate(ctx) == 12
        learned = ctx.home / ".claude" / "skills" / "learned"
        assert learned.is_dir()
        assert str(learned) in caplog.text

    def test_configured_min_length(self, ctx, tmp_path, write_config):
        write_config({"min_session_length": 2})
        ctx.env = {"CLAUDE_TRANSCRIPT_PATH": str(self._transcript(tmp_path, 3))}
        assert evaluate_session.evaluate(ctx) == 3

    def test_count_tolerates_spacing(self, tmp_path):
        p = tmp_path / "t.jsonl"
        p.write_text('{"type": "user"}\n{"type":"user"}\n{"type":"assistant"}\n')
        assert evaluate_session.count_user_messages(p) == 2
