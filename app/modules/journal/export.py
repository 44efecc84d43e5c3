from typing import Any, Dict, List

TRANSCRIPT_SNIPPET_CHARS = 600


def render_markdown(entry: Dict[str, Any], evidence: List[Dict[str, Any]], redact: bool = False) -> str:
    """Markdown export of one journal entry. redact drops location, emotions, captions and transcripts."""
    lines = [f"# {entry.get('title') or 'Journal Entry'}", ""]
    lines.append(f"Date: {entry.get('incident_date') or entry.get('created_at')}")
    if entry.get("location") and not redact:
        lines.append(f"Location: {entry['location']}")
    lines.append(f"Safety: {entry.get('safety_rating')}/5")
    if isinstance(entry.get("mood_rating"), int):
        lines.append(f"Mood: {entry['mood_rating']}/10")
    lines.append("")

    if entry.get("description"):
        lines += ["## What happened", "", entry["description"], ""]

    if entry.get("abuse_types"):
        lines.append("## Behavior types")
        lines += [f"- {t.replace('_', ' ')}" for t in entry["abuse_types"]]
        lines.append("")

    before = entry.get("emotional_state_before")
    after = entry.get("emotional_state_after")
    if not redact and (before or after):
        lines.append("## Emotional impact")
        if before:
            lines.append(f"- Before: {before}")
        if after:
            lines.append(f"- After: {after}")
        lines.append("")

    if evidence:
        lines.append("## Evidence")
        for item in evidence:
            name = item.get("file_name") or item.get("storage_path")
            caption = f" - {item['caption']}" if item.get("caption") and not redact else ""
            lines.append(f"- {name}{caption}")
            transcript = item.get("transcription")
            if transcript and not redact:
                snippet = transcript[:TRANSCRIPT_SNIPPET_CHARS]
                ellipsis = "…" if len(transcript) > TRANSCRIPT_SNIPPET_CHARS else ""
                lines.append(f"  - Transcript: {snippet}{ellipsis}")
        lines.append("")

    return "\n".join(lines)
