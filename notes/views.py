from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsOwner
from . import services
from .grid import Rect, Size
from .serializers import (
    NoteCreateSerializer,
    NoteSerializer,
    NoteUpdateSerializer,
    StickyNoteDetailSerializer,
)


class NoteListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        board = services.list_board(request.user)
        return Response(
            {
                "notes": NoteSerializer(board["notes"], many=True).data,
                "tags": board["tags"],
            }
        )

    def post(self, request):
        serializer = NoteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        grid = data.get("grid")
        size = Size(grid["w"], grid["h"]) if grid else None
        note = services.create_note(request.user, data["content"], data["tags"], size=size)
        return Response({"id": note.id}, status=status.HTTP_201_CREATED)


class NoteDetailView(APIView):
    permission_classes = [IsAuthenticated, IsOwner]

    def get_object(self, pk):
        note = services.get_note(self.request.user, pk)
        # Extra security: the lookup is owner-scoped, re-check anyway
        self.check_object_permissions(self.request, note)
        return note

    def get(self, request, pk):
        return Response(StickyNoteDetailSerializer(self.get_object(pk)).data)

    def patch(self, request, pk):
        serializer = NoteUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        grid = data.get("grid")
        services.update_note(
            request.user,
            pk,
            content=data.get("content"),
            tags=data.get("tags"),
            locked=data.get("locked"),
            rect=Rect(grid["x"], grid["y"], grid["w"], grid["h"]) if grid else None,
        )
        return Response({"detail": "Note updated."})

    def delete(self, request, pk):
        services.delete_note(request.user, pk)
        return Response({"detail": "Note deleted."})
