from __future__ import annotations

# Changelog engine (git-cliff walks the whole history)
CHANGELOG_TIMEOUT_SECONDS = 120.0

# Manifest editor tools (cargo set-version may refresh Cargo.lock)
MANIFEST_TOOL_TIMEOUT_SECONDS = 120.0
