import json
import re
from typing import Any


def clean_json_response(content: str) -> str:
    """
    Clean JSON response from LLM by removing markdown code blocks.

    Args:
        content: The raw string response from LLM

    Returns:
        Cleaned string containing just the JSON content
    """
    # Remove markdown code blocks
    pattern = r"```(?:json)?\s*(.*?)\s*```"
    match = re.search(pattern, content, re.DOTALL)
    if match:
        return match.group(1)

    # Also handle case where it might be wrapped in just ```
    return content.strip()


def extract_json(content: str, opening: str = "{") -> Any:
    """
    Parse the first JSON object (or array, with ``opening="["``) in an LLM reply.

    Models often wrap JSON in prose or code fences; this tries the cleaned
    reply first, then the outermost bracketed span.

    Raises:
        ValueError: if no JSON value of the requested shape can be parsed.
    """
    closing = {"{": "}", "[": "]"}[opening]
    expected = dict if opening == "{" else list

    cleaned = clean_json_response(content or "")
    candidates = [cleaned]
    start, end = cleaned.find(opening), cleaned.rfind(closing)
    if start != -1 and end > start:
        candidates.append(cleaned[start:end + 1])

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, expected):
            return value

    raise ValueError(f"No JSON {expected.__name__} found in model response")
