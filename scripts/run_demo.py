"""End-to-end demo: classify -> save -> embed -> retrieve -> insight -> coping strategies."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from journal_insight.config import AppConfig  # noqa: E402
from journal_insight.logging_config import configure_logging  # noqa: E402
from journal_insight.pipeline import JournalPipeline  # noqa: E402


DEMO_USER = "demo-user"
DEMO_ENTRIES = [
    ("Work was awful today and I feel anxious about the deadline.", 35),
    ("Had a good walk with a friend, feeling a bit calmer.", 55),
    ("I feel great and happy today, the presentation went well.", 85),
]


def main() -> None:
    config_path = PROJECT_ROOT / "config.yaml"
    config = AppConfig.from_yaml(str(config_path))
    configure_logging(config.logging)
    pipeline = JournalPipeline(config)

    try:
        for content, mood in DEMO_ENTRIES:
            submission = pipeline.submit_entry(DEMO_USER, content, mood)
            entry = submission.entry
            history = submission.context.user_history if submission.context else None

            print(f"\n== Entry {entry.id} ==")
            print(f"text: {content}")
            print(f"mood: {mood} sentiment: {entry.sentiment.label} ({entry.sentiment.confidence:.2f})")
            if history is not None:
                print(
                    f"history: avg={history.avg_mood_score:.1f} trend={history.recent_trend} "
                    f"emotions={', '.join(history.common_emotions) or '-'}"
                )
                print(f"similar entries: {len(submission.context.similar_entries)}")
            print("\n-- Insight --")
            print(submission.insight)
            print("\n-- Coping strategies --")
            for i, item in enumerate(submission.recommendations, start=1):
                print(f"{i}. {item}")

        plan = pipeline.plan_intervention(DEMO_USER, current_mood="good")
        print("\n== Intervention Plan ==")
        for bucket, items in plan.to_dict().items():
            print(f"{bucket}: {'; '.join(items)}")
    finally:
        pipeline.close()


if __name__ == "__main__":
    main()
