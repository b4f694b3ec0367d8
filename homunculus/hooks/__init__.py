"""
Homunculus Hooks - Observation Pipeline Wired to Claude Code Events
===================================================================
Hooks:
  observe.py          - PreToolUse/PostToolUse: append one observation line
  session_end.py      - Stop: hand the log to the analyzer, archive, reset
  evaluate_session.py - Stop: flag long sessions for skill extraction
  events.py           - Pure classifier: payload -> recognized event shape

All hooks are EXTERNAL processes (subprocess, not in-agent).
All hooks exit 0, whatever happens inside.
"""
