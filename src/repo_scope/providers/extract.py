import json
from typing import Any


def extract_json_blocks_from_text(text: str) -> list[str]:
    """Extract all fenced (```) blocks from a text string."""

    lines = text.strip().split("\n")

    start_index: int | None = None
    end_index: int | None = None

    matches: list[str] = []

    for i, line in enumerate(lines):
        stripped_line = line.strip()
        if stripped_line.startswith("```") and start_index is None:
            start_index = i + 1
            continue
        if stripped_line.startswith("```") and start_index is not None and end_index is None:
            end_index = i

        if start_index is not None and end_index is not None:
            matches.append("\n".join(lines[start_index:end_index]))
            start_index = None
            end_index = None

    return matches


def load_json_payload(text: str) -> Any:  # pyright: ignore[reportAny]
    """Load the JSON in the text. Models without a JSON mode sometimes wrap their answer in a single
    Markdown block, in which case the contents of the block are loaded instead.

    Raises:
        json.JSONDecodeError: If neither the text nor its single fenced block is valid JSON.
    """

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        json_blocks: list[str] = extract_json_blocks_from_text(text)

        if len(json_blocks) != 1:
            raise

        return json.loads(json_blocks[0])
