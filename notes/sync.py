"""
Client-side board state kept in step with the notes API.

Local state gives immediate feedback and the server owns persistence. Every
rectangle change goes through two explicit phases: `apply_local` updates the
board at once, `commit_remote` sends the final rectangle for that one note.
A failed commit is undone with `revert_local`, which restores the note's
last server-confirmed rectangle. An authentication failure leaves local
state alone and asks the user to sign in again.

The transport is any object with `list_notes()`, `create_note(content,
tags, size)`, `patch_note(note_id, **fields)` and `delete_note(note_id)`,
each returning `Ack` or `SyncFailure`. `notes.client.NotesApiClient` is the
HTTP implementation.
"""

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from core import errors

from .arrange import BoardItem, auto_arrange, filter_items, pack_in_order, reading_order
from .grid import Rect
from .placement import place
from .sizing import estimate_note_size

logger = logging.getLogger(__name__)

ERROR_COOLDOWN_SECONDS = 2.0


@dataclass(frozen=True)
class Ack:
    data: Any = None


@dataclass(frozen=True)
class SyncFailure:
    code: str
    message: str = ""
    status: Optional[int] = None

    @property
    def retryable(self):
        return self.code in errors.RETRYABLE


def is_unauthenticated(result):
    return isinstance(result, SyncFailure) and result.code == errors.UNAUTHENTICATED


class ErrorNotice:
    """User-visible error sink. `report` drops repeats inside the cooldown window."""

    def __init__(self, cooldown=ERROR_COOLDOWN_SECONDS, clock=time.monotonic, sink=None):
        self.cooldown = cooldown
        self._clock = clock
        self._sink = sink
        self._last_reported_at = None
        self.messages: List[str] = []

    def show(self, message):
        self.messages.append(message)
        if self._sink is not None:
            self._sink(message)

    def report(self, message):
        now = self._clock()
        if self._last_reported_at is not None and now - self._last_reported_at <= self.cooldown:
            logger.debug("Suppressed board error during cooldown: %s", message)
            return False
        self._last_reported_at = now
        self.show(message)
        return True


@dataclass
class LocalNote:
    id: str
    rect: Rect
    confirmed_rect: Rect
    content: str = ""
    tags: Tuple[str, ...] = ()
    locked: bool = False
    created_at: str = ""
    pending: bool = False

    @classmethod
    def from_payload(cls, payload):
        rect = Rect(
            int(payload.get("grid_x") or 0),
            int(payload.get("grid_y") or 0),
            int(payload.get("grid_w") or 1),
            int(payload.get("grid_h") or 1),
        )
        return cls(
            id=str(payload["id"]),
            rect=rect,
            confirmed_rect=rect,
            content=payload.get("content") or "",
            tags=tuple(payload.get("tags") or ()),
            locked=bool(payload.get("layout_locked")),
            created_at=str(payload.get("created_at") or ""),
        )

    def as_board_item(self):
        return BoardItem(
            id=self.id,
            rect=self.rect,
            locked=self.locked,
            content=self.content,
            tags=self.tags,
            created_at=self.created_at,
        )


class BoardSync:
    def __init__(
        self,
        transport,
        notice: Optional[ErrorNotice] = None,
        measurer=None,
        on_login_required: Optional[Callable[[], None]] = None,
    ):
        self.transport = transport
        self.notice = notice or ErrorNotice()
        self.measurer = measurer
        self._on_login_required = on_login_required
        self.notes: Dict[str, LocalNote] = {}
        self.tags: List[str] = []
        self.login_required = False
        self.saving_layout = False
        self._pending_ids = itertools.count(1)

    def _require_login(self):
        self.login_required = True
        logger.info("Board session expired; sign-in required")
        if self._on_login_required is not None:
            self._on_login_required()

    # -- two-phase rectangle protocol ---------------------------------------

    def apply_local(self, note_id, rect):
        """Show `rect` immediately. Returns the rectangle it replaced."""
        note = self.notes[note_id]
        previous = note.rect
        note.rect = rect
        return previous

    def commit_remote(self, note_id, rect):
        result = self.transport.patch_note(note_id, grid=rect)
        if isinstance(result, Ack) and note_id in self.notes:
            self.notes[note_id].confirmed_rect = rect
        return result

    def revert_local(self, note_id, previous):
        note = self.notes.get(note_id)
        if note is not None:
            note.rect = previous

    def _settle_layout(self, note_id, result):
        if isinstance(result, Ack):
            return
        if is_unauthenticated(result):
            self._require_login()
            return
        note = self.notes.get(note_id)
        if note is not None:
            self.revert_local(note_id, note.confirmed_rect)
        logger.warning("Saving layout of note %s failed: %s %s", note_id, result.code, result.message)
        self.notice.report(result.message or "Saving the layout failed.")

    # -- user flows ---------------------------------------------------------

    def load(self):
        result = self.transport.list_notes()
        if isinstance(result, Ack):
            payload = result.data or {}
            self.notes = {}
            for item in payload.get("notes", []):
                note = LocalNote.from_payload(item)
                self.notes[note.id] = note
            self.tags = list(payload.get("tags", []))
            self.login_required = False
        elif is_unauthenticated(result):
            self._require_login()
        else:
            self.notice.show(result.message or "Loading notes failed.")
        return result

    def move_note(self, note_id, rect):
        """Drag or resize stop: one PATCH carrying the final rectangle."""
        self.apply_local(note_id, rect)
        self.saving_layout = True
        try:
            result = self.commit_remote(note_id, rect)
        finally:
            self.saving_layout = False
        self._settle_layout(note_id, result)
        return result

    def set_locked(self, note_id, locked):
        note = self.notes[note_id]
        previous = note.locked
        note.locked = bool(locked)
        result = self.transport.patch_note(note_id, locked=bool(locked))
        if isinstance(result, Ack):
            return result
        note.locked = previous
        if is_unauthenticated(result):
            self._require_login()
        else:
            self.notice.show(result.message or "Locking the note failed.")
        return result

    def create_note(self, content, tags, metrics):
        """
        Size the note for the live grid, show it at the first free slot, then
        POST it. The board is reloaded on success so the server's placement wins.
        """
        content = (content or "").strip()
        size = estimate_note_size(content, metrics.col_width, metrics.inset, self.measurer)
        rect = place([n.rect for n in self.notes.values()], size)

        pending_id = f"pending-{next(self._pending_ids)}"
        self.notes[pending_id] = LocalNote(
            id=pending_id,
            rect=rect,
            confirmed_rect=rect,
            content=content,
            tags=tuple(tags),
            pending=True,
        )

        result = self.transport.create_note(content, list(tags), size)
        self.notes.pop(pending_id, None)
        if isinstance(result, Ack):
            self.load()
        elif is_unauthenticated(result):
            self._require_login()
        else:
            self.notice.show(result.message or "Creating the note failed.")
        return result

    def edit_note(self, note_id, content, tags):
        result = self.transport.patch_note(note_id, content=content.strip(), tags=list(tags))
        if isinstance(result, Ack):
            self.load()
        elif is_unauthenticated(result):
            self._require_login()
        else:
            self.notice.show(result.message or "Updating the note failed.")
        return result

    def delete_note(self, note_id):
        removed = self.notes.pop(note_id)
        result = self.transport.delete_note(note_id)
        if isinstance(result, Ack):
            return result
        if is_unauthenticated(result):
            self._require_login()
            return result
        self.notes[note_id] = removed
        self.notice.show(result.message or "Deleting the note failed.")
        return result

    def auto_arrange(self, metrics):
        """
        Repack the board locally, then PATCH each moved note in placement
        order. A failed note is reverted on its own; siblings that saved stay
        saved. The loop stops once the session has expired.
        """
        if self.saving_layout or not self.notes:
            return []

        items = [n.as_board_item() for n in self.notes.values() if not n.pending]
        placements = auto_arrange(items, metrics.col_width, metrics.inset, self.measurer)
        for note_id, rect in placements:
            self.apply_local(note_id, rect)

        outcomes = []
        self.saving_layout = True
        try:
            for note_id, rect in placements:
                result = self.commit_remote(note_id, rect)
                outcomes.append((note_id, result))
                self._settle_layout(note_id, result)
                if is_unauthenticated(result):
                    break
        finally:
            self.saving_layout = False
        return outcomes

    # -- views --------------------------------------------------------------

    def visible_layout(self, tag=None, search="", editing=False):
        """
        (note id, rect) pairs to render, in reading order. Filtered views are
        packed read-only in board order; stored positions are left untouched.
        """
        items = [n.as_board_item() for n in self.notes.values()]
        if editing or (not tag and not (search or "").strip()):
            layout = {item.id: item.rect for item in items}
            visible = items
        else:
            visible = filter_items(items, tag, search)
            layout = pack_in_order(visible)
        return [(item.id, layout[item.id]) for item in reading_order(visible, layout)]
