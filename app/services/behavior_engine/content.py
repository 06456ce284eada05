from dataclasses import dataclass


@dataclass(frozen=True)
class DocumentSnapshot:
    text: str = ""
    cursor_offset: int = 0

    @property
    def length(self) -> int:
        return len(self.text)


class ContentTracker:
    """
    Latest document text + cursor, and the running throughput counter.

    Only the previous length is remembered; it is enough to derive the
    per-update delta.
    """

    def __init__(self, paste_guard_chars: int = 50):
        self.paste_guard_chars = paste_guard_chars
        self.snapshot = DocumentSnapshot()
        self.previous_length = 0
        self.total_chars_typed = 0

    def update(self, text: str, cursor_offset: int) -> int:
        """Store the new snapshot and return the absolute length delta."""
        cursor = max(0, min(int(cursor_offset), len(text)))
        self.snapshot = DocumentSnapshot(text=text, cursor_offset=cursor)

        delta = abs(len(text) - self.previous_length)
        if delta < self.paste_guard_chars:
            self.total_chars_typed += delta
        self.previous_length = len(text)
        return delta

    def cursor_at_end(self, slack: int = 1) -> bool:
        return (self.snapshot.length - self.snapshot.cursor_offset) <= slack

    @property
    def text(self) -> str:
        return self.snapshot.text

    @property
    def cursor_offset(self) -> int:
        return self.snapshot.cursor_offset

    @property
    def length(self) -> int:
        return self.snapshot.length
