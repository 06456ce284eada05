from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List

# --- CLASSIFICATION ENUMS ---

class CoarseType(str, Enum):
    TYPE = "TYPE"
    EDIT = "EDIT"
    ENTER = "ENTER"
    OTHER = "OTHER"

class KeyKind(str, Enum):
    BACKSPACE = "BACKSPACE"
    SPACE = "SPACE"
    ENTER = "ENTER"
    CHAR = "CHAR"

class SinkType(str, Enum):
    INPUT = "INPUT"
    DELETE = "DELETE"
    NC = "NC"  # non-contributing (navigation / modifier)


# Key names follow KeyboardEvent.key as sent by the editor.
DELETE_KEYS = frozenset({"Backspace", "Delete"})
NAVIGATION_KEYS = frozenset({
    "ArrowLeft", "ArrowRight", "ArrowUp", "ArrowDown",
    "Home", "End", "PageUp", "PageDown",
})
MODIFIER_KEYS = frozenset({
    "Shift", "Control", "Alt", "Meta", "CapsLock", "Tab", "Escape",
    "Process", "Unidentified", "Dead",
})
SPACE_KEYS = frozenset({" ", "Space", "Spacebar"})
ENTER_KEY = "Enter"


def is_delete_key(key: str) -> bool:
    return key in DELETE_KEYS


def classify_coarse(key: str) -> CoarseType:
    """EDIT for delete/navigation, ENTER for newline, TYPE for everything else."""
    if key in DELETE_KEYS or key in NAVIGATION_KEYS:
        return CoarseType.EDIT
    if key == ENTER_KEY:
        return CoarseType.ENTER
    return CoarseType.TYPE


def classify_keystroke(key: str) -> KeyKind:
    if key in DELETE_KEYS:
        return KeyKind.BACKSPACE
    if key in SPACE_KEYS:
        return KeyKind.SPACE
    if key == ENTER_KEY:
        return KeyKind.ENTER
    # Composed IME text ("한") lands here too
    return KeyKind.CHAR


def classify_for_sink(key: str) -> SinkType:
    if key in DELETE_KEYS:
        return SinkType.DELETE
    if key in NAVIGATION_KEYS or key in MODIFIER_KEYS:
        return SinkType.NC
    return SinkType.INPUT


# --- RECORDS ---

@dataclass(frozen=True)
class EventRecord:
    timestamp: float
    raw_key: str
    classified_type: CoarseType
    cursor_offset: int


@dataclass(frozen=True)
class KeystrokeRecord:
    kind: KeyKind
    timestamp: float
    burst_length: int


class EventHistory:
    """
    Bounded FIFO buffers of recent input.

    Two independent windows: coarse events (edit ratio, phase) and fine-grained
    keystrokes (revision ratio). Both evict the oldest record on overflow.
    """

    def __init__(self, capacity: int = 200):
        self.capacity = capacity
        self._events: Deque[EventRecord] = deque(maxlen=capacity)
        self._keystrokes: Deque[KeystrokeRecord] = deque(maxlen=capacity)

    def append_event(self, record: EventRecord) -> None:
        self._events.append(record)

    def append_keystroke(self, record: KeystrokeRecord) -> None:
        self._keystrokes.append(record)

    def recent_events(self, n: int) -> List[EventRecord]:
        if n <= 0:
            return []
        return list(self._events)[-n:]

    def recent_keystrokes(self, n: int) -> List[KeystrokeRecord]:
        if n <= 0:
            return []
        return list(self._keystrokes)[-n:]

    @property
    def events(self) -> List[EventRecord]:
        return list(self._events)

    @property
    def keystrokes(self) -> List[KeystrokeRecord]:
        return list(self._keystrokes)

    def clear(self) -> None:
        self._events.clear()
        self._keystrokes.clear()
