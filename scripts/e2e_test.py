"""Minimal offline end-to-end validation script."""

from __future__ import annotations

import shutil
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from journal_insight.config import AppConfig  # noqa: E402
from journal_insight.insights import fallback_strategies  # noqa: E402
from journal_insight.pipeline import JournalPipeline  # noqa: E402


def main() -> None:
    tmp_root = PROJECT_ROOT / "data" / "tmp_e2e"
    if tmp_root.exists():
        shutil.rmtree(tmp_root)
    tmp_root.mkdir(parents=True, exist_ok=True)

    cfg = AppConfig.from_dict(
        {
            "paths": {
                "sqlite_path": str(tmp_root / "journal.db"),
                "chroma_dir": str(tmp_root / "chroma"),
            },
            "generation": {
                "enabled": False
            },
        },
        base_dir=PROJECT_ROOT,
    )

    pipeline = JournalPipeline(cfg)
    empty = pipeline.build_context("anything", "e2e-user")
    assert empty.user_history.avg_mood_score == 50, "Empty history should use the neutral baseline."
    assert empty.user_history.recent_trend == "insufficient-data"

    submission = pipeline.submit_entry("e2e-user", "I feel great and happy today", 85)
    assert submission.entry.sentiment.label == "positive", "Expected a positive label."
    assert "positive outlook" in submission.insight, "Expected the positive-framing fallback."
    assert submission.recommendations == fallback_strategies("low"), "Expected the low-risk list."

    stored = pipeline.store.query_recent_entries("e2e-user", 5)
    assert stored and stored[0].ai_insight == submission.insight, "AI fields should be attached."
    pipeline.close()

    print("E2E PASS")
    print({"entry": submission.entry.id, "strategies": len(submission.recommendations)})


if __name__ == "__main__":
    main()
