"""Live preview of a quiz payload arriving token by token."""

import asyncio
import json
import random

from streamjson import PreviewSettings, ProgressTracker, apreview_stream, get_logger

logger = get_logger("quiz_stream_preview")


QUESTIONS = [
    {
        "orderIndex": i,
        "type": kind,
        "stem": stem,
        "options": [
            {"index": letter, "text": f"Option {letter}", "isCorrect": letter == "A"}
            for letter in "ABCD"
        ],
        "reference": 1,
    }
    for i, (kind, stem) in enumerate(
        [
            ("direct_question", "What is the capital of France?"),
            ("two_statement_compound", "Statement 1: Paris is in France. Statement 2: Lyon is the capital."),
            ("contextual", "A traveller lands at CDG. Which city are they in?"),
        ]
    )
]


async def fake_llm_stream(payload: str):
    """Emit the payload in small random chunks, like a model streaming tokens."""
    position = 0
    while position < len(payload):
        size = random.randint(1, 12)
        yield payload[position:position + size]
        position += size
        await asyncio.sleep(0.01)


async def main():
    settings = PreviewSettings.from_env()
    logger.setLevel(settings.log_level)
    payload = "```json\n" + json.dumps(QUESTIONS) + "\n```"

    tracker = ProgressTracker(
        total_items=len(QUESTIONS), preview_fields=["orderIndex", "type", "stem"]
    )
    async for snapshot in apreview_stream(fake_llm_stream(payload), settings=settings):
        event = tracker.update(snapshot)
        if event:
            logger.info(
                f"{event.items_generated}/{event.total_items} questions: {event.last_item}"
            )


if __name__ == "__main__":
    asyncio.run(main())
