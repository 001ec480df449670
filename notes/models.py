from django.db import models
from django.contrib.auth.models import User

from .grid import Rect, clamp_rect


class StickyNote(models.Model):
    id = models.CharField(primary_key=True, max_length=32, editable=False)
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="sticky_notes")
    tag = models.CharField(max_length=64)
    content = models.TextField()
    grid_x = models.PositiveIntegerField(default=0)
    grid_y = models.PositiveIntegerField(default=0)
    grid_w = models.PositiveIntegerField(default=16)
    grid_h = models.PositiveIntegerField(default=16)
    layout_locked = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["owner", "created_at"], name="sticky_note_owner_created_idx"),
        ]

    @property
    def rect(self):
        return clamp_rect(self.grid_x, self.grid_y, self.grid_w, self.grid_h)

    def set_rect(self, rect: Rect):
        self.grid_x, self.grid_y, self.grid_w, self.grid_h = rect.x, rect.y, rect.w, rect.h


class StickyNoteTag(models.Model):
    note = models.ForeignKey(StickyNote, on_delete=models.CASCADE, related_name="tag_rows")
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="sticky_note_tags")
    tag = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["note", "tag"], name="uniq_sticky_note_tag")
        ]
        indexes = [
            models.Index(fields=["owner", "tag"], name="sticky_note_tag_owner_idx"),
        ]
