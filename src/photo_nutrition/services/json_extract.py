"""Extraction of JSON objects embedded in free-form model replies."""

import json

_DECODER = json.JSONDecoder()


class JsonExtractionError(ValueError):
    """Raised when no JSON object can be recovered from a text."""


def parse_first_json_object(text: str | None) -> dict[str, object]:
    """Return the first decodable JSON object found in ``text``.

    Models often wrap their JSON in prose or Markdown fences, so each ``{`` is tried as
    a starting point in order until one decodes to an object. When a candidate fails to
    decode, the search resumes after the point where decoding failed; braces nested in
    a broken object are never returned on their own.
    """
    if not text:
        raise JsonExtractionError("empty text")
    start = text.find("{")
    if start == -1:
        raise JsonExtractionError("no JSON object in text")
    while start != -1:
        try:
            value, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError as exc:
            start = text.find("{", max(exc.pos, start + 1))
            continue
        return value
    raise JsonExtractionError("no decodable JSON object in text")
