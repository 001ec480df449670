from rest_framework import serializers

from .grid import COLS, MAX_ROWS
from .services import MAX_CONTENT_LENGTH, MAX_TAG_LENGTH, MAX_TAGS, normalize_tags


class GridSizeSerializer(serializers.Serializer):
    w = serializers.IntegerField(min_value=1, max_value=COLS)
    h = serializers.IntegerField(min_value=1, max_value=MAX_ROWS)


class GridRectSerializer(serializers.Serializer):
    x = serializers.IntegerField(min_value=0, max_value=COLS - 1)
    y = serializers.IntegerField(min_value=0, max_value=MAX_ROWS)
    w = serializers.IntegerField(min_value=1, max_value=COLS)
    h = serializers.IntegerField(min_value=1, max_value=MAX_ROWS)

    def validate(self, attrs):
        if attrs["x"] + attrs["w"] > COLS:
            raise serializers.ValidationError(f"x + w must not exceed {COLS}.")
        return attrs


class TagsField(serializers.ListField):
    child = serializers.CharField(allow_blank=True, trim_whitespace=False)

    def to_internal_value(self, data):
        tags = normalize_tags(super().to_internal_value(data))
        if tags is None:
            raise serializers.ValidationError(
                f"Provide 1 to {MAX_TAGS} distinct tags of at most {MAX_TAG_LENGTH} characters."
            )
        return tags


class NoteCreateSerializer(serializers.Serializer):
    tag = serializers.CharField(max_length=MAX_TAG_LENGTH, required=False)
    tags = TagsField(required=False)
    content = serializers.CharField(max_length=MAX_CONTENT_LENGTH)
    grid = GridSizeSerializer(required=False)

    def validate(self, attrs):
        # older clients send a single "tag"
        legacy = attrs.pop("tag", None)
        if "tags" not in attrs:
            tags = normalize_tags([legacy] if legacy else [])
            if tags is None:
                raise serializers.ValidationError({"tags": f"Provide 1 to {MAX_TAGS} tags."})
            attrs["tags"] = tags
        return attrs


class NoteUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=MAX_CONTENT_LENGTH, required=False)
    tags = TagsField(required=False)
    locked = serializers.BooleanField(required=False)
    grid = GridRectSerializer(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No fields to update.")
        return attrs


class NoteSerializer(serializers.Serializer):
    id = serializers.CharField()
    owner_id = serializers.IntegerField()
    tag = serializers.CharField()
    tags = serializers.ListField(child=serializers.CharField())
    content = serializers.CharField()
    grid_x = serializers.IntegerField()
    grid_y = serializers.IntegerField()
    grid_w = serializers.IntegerField()
    grid_h = serializers.IntegerField()
    layout_locked = serializers.BooleanField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class StickyNoteDetailSerializer(NoteSerializer):
    tags = serializers.SerializerMethodField()

    def get_tags(self, instance):
        tags = [row.tag for row in instance.tag_rows.order_by("created_at", "id")]
        return tags or ([instance.tag] if instance.tag else [])
