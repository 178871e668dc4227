"""Extract JSON payloads from free-form model replies.

Replies may wrap the payload in a ```json fence, or surround it with
commentary. Extraction tries, in order: the first fenced block, the whole
text, then the first position where a JSON array or object decodes.
"""

import json
import re
from typing import Any

from careersync.core.errors import AnalysisError

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)\n?\s*```", re.DOTALL)
_DECODER = json.JSONDecoder()


def extract_json(raw_text: str) -> Any:
    """Return the first JSON value found in raw_text.

    Raises:
        AnalysisError: If no JSON value can be decoded.
    """
    text = raw_text.strip()
    if not text:
        msg = "Model returned an empty response"
        raise AnalysisError(msg)

    candidates = [m.group(1).strip() for m in _FENCE_RE.finditer(text)]
    candidates.append(text)
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    for match in re.finditer(r"[\[{]", text):
        try:
            value, _ = _DECODER.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        return value

    msg = "Failed to parse model response as JSON"
    raise AnalysisError(msg)
