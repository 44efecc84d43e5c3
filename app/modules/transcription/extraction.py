"""
Field extraction for Gladia transcription payloads.

The status endpoint has returned several shapes over its versions:
- v2 nested:  {"result": {"transcription": {"full_transcript", "utterances"}, "metadata"}}
- v2 legacy:  {"transcription": {"full_transcript", "utterances"}, "metadata"}
- v1:         {"prediction": [{"transcription", "language", "confidence", ...}]}

Every helper here accepts any JSON value and never raises on unexpected types.
"""

from typing import Any, Dict, List, Optional


def _get(obj: Any, *path) -> Any:
    """Walk dict keys / list indexes; None as soon as a step does not fit."""
    current = obj
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
        elif not isinstance(current, dict):
            return None
        current = current[step] if isinstance(step, int) else current.get(step)
        if current is None:
            return None
    return current


def _clean(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _join_utterances(utterances: Any) -> Optional[str]:
    if not isinstance(utterances, list):
        return None
    parts = [u["text"].strip() for u in utterances if isinstance(u, dict) and _clean(u.get("text"))]
    return _clean(" ".join(parts))


def extract_transcription_text(result: Any) -> Optional[str]:
    """Return the first non-empty transcript found in a Gladia payload, trimmed, else None."""
    if not isinstance(result, dict):
        return None
    candidates = (
        lambda: _clean(_get(result, "result", "transcription", "full_transcript")),
        lambda: _join_utterances(_get(result, "result", "transcription", "utterances")),
        lambda: _clean(_get(result, "transcription", "full_transcript")),
        lambda: _join_utterances(_get(result, "transcription", "utterances")),
        lambda: _clean(_get(result, "prediction", 0, "transcription")),
    )
    for candidate in candidates:
        text = candidate()
        if text:
            return text
    return None


def _utterances(result: Dict[str, Any]) -> List[Dict[str, Any]]:
    for path in (("result", "transcription", "utterances"), ("transcription", "utterances")):
        utterances = _get(result, *path)
        if isinstance(utterances, list) and utterances:
            return [u for u in utterances if isinstance(u, dict)]
    return []


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def extract_transcription_details(result: Any) -> Dict[str, Any]:
    """Language, confidence, duration (seconds) and word timestamps from a Gladia payload."""
    if not isinstance(result, dict):
        result = {}
    utterances = _utterances(result)

    language = (
        _clean(_get(result, "result", "transcription", "languages", 0))
        or _clean(_get(result, "transcription", "languages", 0))
        or _clean(_get(result, "transcription", "utterances", 0, "language"))
        or _clean(_get(result, "prediction", 0, "language"))
        or "unknown"
    )

    confidences = [c for c in (_number(u.get("confidence")) for u in utterances) if c is not None]
    if confidences:
        confidence = sum(confidences) / len(confidences)
    else:
        confidence = _number(_get(result, "prediction", 0, "confidence")) or 0.0

    duration = _number(_get(result, "result", "metadata", "audio_duration"))
    if duration is None:
        duration = _number(_get(result, "metadata", "audio_duration"))
    if duration is None:
        time_begin = _number(_get(result, "prediction", 0, "time_begin"))
        time_end = _number(_get(result, "prediction", 0, "time_end"))
        if time_begin is not None and time_end is not None:
            duration = max(0.0, time_end - time_begin)
    if duration is None:
        duration = 0.0

    words = []
    for utterance in utterances:
        for word in utterance.get("words") or []:
            if isinstance(word, dict):
                words.append({
                    "word": word.get("word"),
                    "start": word.get("start"),
                    "end": word.get("end"),
                    "confidence": word.get("confidence"),
                })

    return {
        "language": language,
        "confidence": confidence,
        "duration": duration,
        "words": words,
    }
