"""Customer feedback note tools: create, list, attach to feature."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ..client import ListNotesParams, Note, NoteCompany, NoteInput, NoteSource, NoteUser
from ..core import BaseTool, ToolMetadata, ToolParams, compact
from ..text import clean_text


class CreateNoteParams(ToolParams):
    content: str = Field(..., min_length=1, description="The note content/feedback text (supports HTML)")
    title: str | None = Field(default=None, description="Optional title for the note")
    display_url: str | None = Field(default=None, description="URL of the original source (ticket, message)")
    source_origin: str | None = Field(default=None, description='Origin system identifier (e.g. "zendesk")')
    source_record_id: str | None = Field(default=None, description="Record ID in the origin system")
    user_email: str | None = Field(default=None, description="Email of the user who gave the feedback")
    user_name: str | None = Field(default=None, description="Name of the user who gave the feedback")
    company_name: str | None = Field(default=None, description="Company of the feedback source")
    company_id: str | None = Field(default=None, description="External company ID")
    tags: list[str] | None = Field(default=None, description="Tags to categorize the note")


class ListNotesToolParams(ToolParams):
    limit: int = Field(default=50, ge=1, le=500, description="Maximum number of notes to return")
    created_from: str | None = Field(default=None, description="Only notes created on or after this date (ISO 8601)")
    created_to: str | None = Field(default=None, description="Only notes created on or before this date (ISO 8601)")


class AttachNoteParams(ToolParams):
    note_id: str = Field(..., min_length=1, description="ID of the note to attach")
    feature_id: str = Field(..., min_length=1, description="ID of the feature to attach the note to")


def build_note_input(params: CreateNoteParams) -> NoteInput:
    source = None
    if params.source_origin or params.source_record_id:
        source = NoteSource(origin=params.source_origin, record_id=params.source_record_id)
    company = None
    if params.company_name or params.company_id:
        company = NoteCompany(name=params.company_name, id=params.company_id)
    return NoteInput(
        content=params.content,
        title=params.title,
        display_url=params.display_url,
        tags=params.tags,
        source=source,
        user=NoteUser(email=params.user_email, name=params.user_name) if params.user_email else None,
        company=company,
    )


def note_summary(note: Note) -> dict[str, Any]:
    return compact({
        "id": note.id,
        "title": note.title,
        "content": clean_text(note.content),
        "user": note.user.email if note.user else None,
        "company": note.company.name if note.company else None,
        "tags": note.tags,
        "url": note.links.html if note.links else None,
    })


class CreateNoteTool(BaseTool[CreateNoteParams]):
    metadata = ToolMetadata(
        name="pb_note_create",
        description=(
            "Create a customer feedback note in ProductBoard, optionally with the user, "
            "company and source system it came from."
        ),
        category="notes",
    )
    params_schema = CreateNoteParams

    async def _execute(self, params: CreateNoteParams) -> dict[str, Any]:
        note = await self.client.create_note(build_note_input(params))
        return {"success": True, "note": note_summary(note)}


class ListNotesTool(BaseTool[ListNotesToolParams]):
    metadata = ToolMetadata(
        name="pb_note_list",
        description="List customer feedback notes, optionally filtered by creation date range.",
        category="notes",
    )
    params_schema = ListNotesToolParams

    async def _execute(self, params: ListNotesToolParams) -> dict[str, Any]:
        notes = await self.client.list_notes(ListNotesParams(**params.model_dump()))
        return {
            "count": len(notes),
            "notes": [
                note_summary(n) | compact({"featureCount": len(n.features), "createdAt": n.created_at})
                for n in notes
            ],
        }


class AttachNoteTool(BaseTool[AttachNoteParams]):
    metadata = ToolMetadata(
        name="pb_note_attach",
        description="Attach (link) a customer feedback note to a feature as supporting evidence.",
        category="notes",
    )
    params_schema = AttachNoteParams

    async def _execute(self, params: AttachNoteParams) -> dict[str, Any]:
        await self.client.attach_note_to_feature(params.note_id, params.feature_id)
        return {
            "success": True,
            "message": f"Note {params.note_id} has been attached to feature {params.feature_id}",
        }


NOTE_TOOLS: tuple[type[BaseTool[Any]], ...] = (CreateNoteTool, ListNotesTool, AttachNoteTool)
