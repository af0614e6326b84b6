"""
Outbox — JSON-lines file of events that haven't reached the collector yet.

The delivery core never queues. The command-line runner uses this to hold
events across runs and replay them in one batch when asked.
"""

import json
from pathlib import Path

from .config import log
from .events import Event
from .outcomes import is_error


class Outbox:
    def __init__(self, path):
        self.path = Path(path)

    def _lines(self):
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return [line for line in text.split("\n") if line.strip()]

    def push(self, events):
        """Append events. An exact repeat of the last entry is skipped."""
        lines = self._lines()
        last = lines[-1] if lines else None
        self.path.parent.mkdir(parents=True, exist_ok=True)
        added = 0
        with open(self.path, "a", encoding="utf-8") as f:
            for event in events:
                line = json.dumps(event.as_dict(), sort_keys=True)
                if line == last:
                    continue
                f.write(line + "\n")
                last = line
                added += 1
        if added:
            log.info("Queued %d event(s) in outbox", added)
        return added

    def has_pending(self):
        try:
            return self.path.exists() and self.path.stat().st_size > 0
        except OSError:
            return False

    def pending(self):
        events = []
        for line in self._lines():
            try:
                events.append(Event.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                log.warning("Dropping unreadable outbox entry: %s", e)
        return events

    def _rewrite(self, events):
        if events:
            self.path.write_text(
                "".join(json.dumps(e.as_dict(), sort_keys=True) + "\n" for e in events),
                encoding="utf-8",
            )
        else:
            self.path.unlink(missing_ok=True)

    def flush(self, sender):
        """
        Send everything pending as one batch. Returns (sent, remaining).
        Events the collector lists as failed stay queued; an error result
        keeps the whole batch.
        """
        events = self.pending()
        if not events:
            self._rewrite([])
            return 0, 0

        result = sender.send_batch(events)
        if is_error(result):
            log.warning("Outbox flush failed: %s — %d event(s) kept", result, len(events))
            self._rewrite(events)
            return 0, len(events)

        failed = _failed_indexes(result.get("failedEvents"), events)
        remaining = [e for i, e in enumerate(events) if i in failed]
        self._rewrite(remaining)

        sent = len(events) - len(remaining)
        log.info("Flushed %d event(s) from outbox (%d still pending)", sent, len(remaining))
        return sent, len(remaining)


def _failed_indexes(failed, events):
    """Batch positions of failed events.

    The collector keys failures by batch index; a plain list is matched
    back by (category, key, created).
    """
    if not failed:
        return set()

    indexes = set()
    if isinstance(failed, dict):
        for key in failed:
            try:
                index = int(key)
            except (TypeError, ValueError):
                continue
            if 0 <= index < len(events):
                indexes.add(index)
        return indexes

    wanted = {
        (f.get("category"), f.get("key"), f.get("created"))
        for f in failed if isinstance(f, dict)
    }
    for i, e in enumerate(events):
        if (e.category, e.key, e.created) in wanted:
            indexes.add(i)
    return indexes
