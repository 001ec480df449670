"""
Transactional mutations of a user's sticky-note board.

Every write runs in one transaction that row-locks what it touches with
SELECT ... FOR UPDATE, always scoped by owner. Updates and deletes lock the
single target row; creates lock the owner's whole board while the free slot
is computed, so concurrent creates on a non-empty board serialize.
Database errors are translated into the board error taxonomy here and
nowhere else.
"""

import logging
import math
from contextlib import contextmanager

from django.conf import settings
from django.db import DatabaseError, connection, transaction
from django.utils import timezone

from core.exceptions import InvalidInput, LockConflict, NoteNotFound, PersistenceFailure, SchemaOutdated
from core.ids import new_note_id

from .grid import InvalidRect, clamp_rect, clamp_size, validate_rect
from .models import StickyNote, StickyNoteTag
from .placement import place
from .sizing import default_measurer, estimate_note_size

logger = logging.getLogger(__name__)

MAX_TAGS = 3
MAX_TAG_LENGTH = 64
MAX_CONTENT_LENGTH = 10000

LOCK_COLUMN = "layout_locked"

NOTE_FIELDS = (
    "id",
    "owner_id",
    "tag",
    "content",
    "grid_x",
    "grid_y",
    "grid_w",
    "grid_h",
    LOCK_COLUMN,
    "created_at",
    "updated_at",
)

_MISSING_COLUMN_MARKERS = ("unknown column", "no such column", "has no column", "does not exist")
_LOCK_TIMEOUT_MARKERS = (
    "lock wait timeout",
    "lock timeout",
    "could not obtain lock",
    "database is locked",
    "deadlock",
)


def normalize_tags(raw):
    """Trimmed, de-duplicated tags in input order, or None if the set is unusable."""
    if not isinstance(raw, (list, tuple)):
        return None
    unique = []
    for item in raw:
        tag = str(item if item is not None else "").strip()
        if tag and tag not in unique:
            unique.append(tag)
    if not unique or len(unique) > MAX_TAGS:
        return None
    if any(len(tag) > MAX_TAG_LENGTH for tag in unique):
        return None
    return unique


def is_missing_column(exc, column=LOCK_COLUMN):
    message = str(exc).lower()
    return column in message and any(marker in message for marker in _MISSING_COLUMN_MARKERS)


def is_lock_timeout(exc):
    message = str(exc).lower()
    return any(marker in message for marker in _LOCK_TIMEOUT_MARKERS)


@contextmanager
def translated_errors(action, owner, note_id=None):
    try:
        yield
    except DatabaseError as exc:
        if is_missing_column(exc):
            logger.error("Cannot %s note %s for owner=%s: %s column missing", action, note_id, owner.pk, LOCK_COLUMN)
            raise SchemaOutdated() from exc
        if is_lock_timeout(exc):
            logger.warning("Lock wait timed out during %s of note %s for owner=%s", action, note_id, owner.pk)
            raise LockConflict() from exc
        logger.exception("Failed to %s note %s for owner=%s", action, note_id, owner.pk)
        raise PersistenceFailure() from exc


def _bound_lock_wait():
    timeout_ms = int(getattr(settings, "NOTES_LOCK_TIMEOUT_MS", 5000) or 0)
    if timeout_ms <= 0:
        return
    if connection.vendor == "postgresql":
        with connection.cursor() as cursor:
            cursor.execute(f"SET LOCAL lock_timeout = {timeout_ms}")
    elif connection.vendor == "mysql":
        with connection.cursor() as cursor:
            cursor.execute(f"SET SESSION innodb_lock_wait_timeout = {max(1, math.ceil(timeout_ms / 1000))}")


def _read_note_rows(owner):
    queryset = StickyNote.objects.filter(owner=owner).order_by("-created_at", "-id")
    try:
        with transaction.atomic():
            return list(queryset.values(*NOTE_FIELDS))
    except DatabaseError as exc:
        if not is_missing_column(exc):
            raise
        logger.warning("Reading board for owner=%s without %s; run the notes migrations", owner.pk, LOCK_COLUMN)
        fields = [f for f in NOTE_FIELDS if f != LOCK_COLUMN]
        return list(queryset.values(*fields))


def _note_payload(row, tags_by_note):
    primary = (row.get("tag") or "").strip()
    tags = tags_by_note.get(row["id"]) or ([primary] if primary else [])
    return {
        "id": str(row["id"]),
        "owner_id": row["owner_id"],
        "tag": primary,
        "tags": tags,
        "content": row.get("content") or "",
        "grid_x": int(row.get("grid_x") or 0),
        "grid_y": int(row.get("grid_y") or 0),
        "grid_w": int(row.get("grid_w") or 1),
        "grid_h": int(row.get("grid_h") or 1),
        "layout_locked": bool(row.get(LOCK_COLUMN, False)),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }


def list_board(owner):
    """All of the owner's notes, newest first, plus their distinct tags."""
    with translated_errors("list", owner):
        rows = _read_note_rows(owner)

        tags_by_note = {}
        tag_rows = (
            StickyNoteTag.objects.filter(owner=owner)
            .order_by("created_at", "id")
            .values_list("note_id", "tag")
        )
        for note_id, tag in tag_rows:
            tag = (tag or "").strip()
            if tag:
                tags_by_note.setdefault(note_id, []).append(tag)

        all_tags = sorted(
            {t.strip() for t in StickyNoteTag.objects.filter(owner=owner).values_list("tag", flat=True) if t.strip()}
        )
        return {
            "notes": [_note_payload(row, tags_by_note) for row in rows],
            "tags": all_tags,
        }


def _load_note(owner, note_id):
    queryset = StickyNote.objects.filter(pk=note_id, owner=owner)
    try:
        with transaction.atomic():
            return queryset.first()
    except DatabaseError as exc:
        if not is_missing_column(exc):
            raise
    logger.warning("Reading note %s for owner=%s without %s; run the notes migrations", note_id, owner.pk, LOCK_COLUMN)
    note = queryset.defer(LOCK_COLUMN).first()
    if note is not None:
        note.layout_locked = False
    return note


def get_note(owner, note_id):
    with translated_errors("read", owner, note_id):
        note = _load_note(owner, note_id)
    if note is None:
        raise NoteNotFound()
    return note


def _insert_note(note):
    try:
        with transaction.atomic():
            note.save(force_insert=True)
        return
    except DatabaseError as exc:
        if not is_missing_column(exc):
            raise
    logger.warning("Inserting note %s without %s; run the notes migrations", note.pk, LOCK_COLUMN)
    fields = [f for f in StickyNote._meta.local_concrete_fields if f.column != LOCK_COLUMN]
    StickyNote._base_manager._insert([note], fields=fields, using=connection.alias)
    note._state.adding = False


def create_note(owner, content, tags, size=None, measurer=None):
    """
    Insert a note at the first free slot of the owner's board.

    `size` is the requested footprint; when omitted it is estimated from the
    content with the server's default grid metrics.
    """
    if size is None:
        size = estimate_note_size(
            content,
            getattr(settings, "NOTES_DEFAULT_CELL_PX", 24),
            getattr(settings, "NOTES_DEFAULT_INSET_PX", 6),
            measurer if measurer is not None else default_measurer(),
        )
    size = clamp_size(size.w, size.h)
    note_id = new_note_id()

    with translated_errors("create", owner, note_id):
        with transaction.atomic():
            _bound_lock_wait()
            rows = (
                StickyNote.objects.select_for_update()
                .filter(owner=owner)
                .values_list("grid_x", "grid_y", "grid_w", "grid_h")
            )
            existing = [clamp_rect(*row) for row in rows]
            rect = place(existing, size)

            note = StickyNote(id=note_id, owner=owner, tag=tags[0], content=content)
            note.set_rect(rect)
            _insert_note(note)
            StickyNoteTag.objects.bulk_create(
                [StickyNoteTag(note=note, owner=owner, tag=tag) for tag in tags]
            )

    logger.info("Created note %s for owner=%s at %s", note_id, owner.pk, rect.as_dict())
    return note


def update_note(owner, note_id, content=None, tags=None, locked=None, rect=None):
    """
    Apply any combination of content, tags, lock flag and rect atomically.

    The rect is an absolute final position, so concurrent updates of the
    same note resolve last-writer-wins under the row lock.
    """
    if content is None and tags is None and locked is None and rect is None:
        raise InvalidInput("No fields to update.")
    if rect is not None:
        try:
            validate_rect(rect)
        except InvalidRect as exc:
            raise InvalidInput(str(exc)) from exc

    changes = {}
    if content is not None:
        changes["content"] = content
    if rect is not None:
        changes.update(grid_x=rect.x, grid_y=rect.y, grid_w=rect.w, grid_h=rect.h)
    if locked is not None:
        changes[LOCK_COLUMN] = bool(locked)
    if tags is not None:
        changes["tag"] = tags[0]

    with translated_errors("update", owner, note_id):
        with transaction.atomic():
            _bound_lock_wait()
            found = (
                StickyNote.objects.select_for_update()
                .filter(pk=note_id, owner=owner)
                .values_list("id", flat=True)
                .first()
            )
            if found is None:
                raise NoteNotFound()

            changes["updated_at"] = timezone.now()
            StickyNote.objects.filter(pk=note_id, owner=owner).update(**changes)

            if tags is not None:
                StickyNoteTag.objects.filter(note_id=note_id, owner=owner).delete()
                StickyNoteTag.objects.bulk_create(
                    [StickyNoteTag(note_id=note_id, owner=owner, tag=tag) for tag in tags]
                )

    logger.debug("Updated note %s for owner=%s: %s", note_id, owner.pk, sorted(changes))


def delete_note(owner, note_id):
    with translated_errors("delete", owner, note_id):
        with transaction.atomic():
            _bound_lock_wait()
            found = (
                StickyNote.objects.select_for_update()
                .filter(pk=note_id, owner=owner)
                .values_list("id", flat=True)
                .first()
            )
            if found is None:
                raise NoteNotFound()
            StickyNoteTag.objects.filter(note_id=note_id, owner=owner).delete()
            StickyNote.objects.filter(pk=note_id, owner=owner).only("id").delete()

    logger.info("Deleted note %s for owner=%s", note_id, owner.pk)
