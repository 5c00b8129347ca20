"""Provenance logbook for translation runs."""

from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import json
from pathlib import Path

from ..constants import KEY_FILE, LOGBOOK_FILE, LOGBOOK_SHOW_LIMIT, PUB_FILE
from . import crypto as _crypto


def _timestamp():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def hash_text(text):
    """SHA-256 hex digest of a text, encoded as UTF-8."""

    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def record_digest(record):
    """Digest of a record's canonical JSON form, ignoring any signature."""

    payload = {k: v for k, v in record.items() if k != "signature"}
    data = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def build_translation_record(result, *, source_path=None, output_path=None):
    """Summarize a translation result as a JSON-serializable record."""

    source_text = "\n".join(result.source)
    return {
        "timestamp": _timestamp(),
        "source": str(source_path) if source_path else None,
        "output": str(output_path) if output_path else None,
        "source_hash": hash_text(source_text),
        "output_hash": hash_text(result.text) if result.ok else None,
        "ok": result.ok,
        "lines": len(result.source),
        "functions": [sig.to_dict() for sig in result.registry],
        "calls": len(result.calls),
        "diagnostics": [d.to_dict() for d in result.diagnostics],
    }


def record_translation(
    record,
    *,
    logbook_path=LOGBOOK_FILE,
    sign=True,
    key_file=KEY_FILE,
    pub_file=PUB_FILE,
):
    """Append a record to the logbook, signed unless ``sign`` is false."""

    entry = dict(record)
    entry["digest"] = record_digest(entry)
    if sign:
        entry["signature"] = _crypto.sign_digest(entry["digest"], key_file, pub_file)

    with open(logbook_path, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry) + "\n")

    mark = "📜 Recorded and signed" if sign else "📜 Recorded"
    print(f"  {mark} translation → {logbook_path}")
    return entry


def read_logbook(logbook_path=LOGBOOK_FILE, limit=None):
    path = Path(logbook_path)
    if not path.exists():
        return []
    entries = [json.loads(line) for line in path.read_text(encoding="utf-8").split("\n") if line.strip()]
    if limit is not None:
        entries = entries[-limit:]
    return entries


def verify_entry(entry, pub_file=PUB_FILE):
    """Recompute an entry's digest and check its signature."""

    if entry.get("digest") != record_digest({k: v for k, v in entry.items() if k != "digest"}):
        return False
    signature = entry.get("signature")
    if not signature:
        return False
    return _crypto.verify_signature(entry["digest"], signature, pub_file)


def show_logbook(limit=LOGBOOK_SHOW_LIMIT, logbook_path=LOGBOOK_FILE):
    """Print the most recent logbook entries, newest first."""

    entries = read_logbook(logbook_path, limit)
    if not entries:
        print("No logbook yet.")
        return entries

    print(f"\ntuplec logbook — last {len(entries)} entries:")
    for e in reversed(entries):
        status = "ok" if e.get("ok") else f"{len(e.get('diagnostics', []))} error(s)"
        print(f"• {e['timestamp']}  {e.get('source') or '<stdin>'}  [{status}]  {e['digest'][:12]}…")
        names = [f["name"] for f in e.get("functions", [])]
        if names:
            print(f"    functions: {', '.join(names)}")
    return entries


__all__ = [
    "hash_text",
    "record_digest",
    "build_translation_record",
    "record_translation",
    "read_logbook",
    "verify_entry",
    "show_logbook",
]
