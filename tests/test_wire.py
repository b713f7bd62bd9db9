import json
from datetime import datetime, timezone

import pytest

from core.models import Attachment, IdeaFolder, IdeaItem, Task, VoiceNote
from core.wire import (
    fill_packed_fields, from_wire, parse_timestamp, patch_to_wire, task_from_wire, to_wire,
    voice_note_from_wire, voice_note_to_wire,
)


def test_task_to_wire_uses_snake_case_and_drops_unset_fields():
    task = Task(title="Pay rent", niche="Finanças", due_date="2024-05-01", value=-1200,
                financial_type="expense", reschedule_count=2)
    wire = to_wire(task)

    assert wire["due_date"] == "2024-05-01"
    assert wire["financial_type"] == "expense"
    assert wire["reschedule_count"] == 2
    assert "id" not in wire
    assert "created_at" not in wire
    assert "description" not in wire


def test_task_from_wire_fills_defaults():
    task = task_from_wire({"id": "t1", "title": "x", "created_at": "2024-01-02T03:04:05Z"})

    assert task.status == "todo"
    assert task.niche == "Geral"
    assert task.reschedule_count == 0
    assert task.attachments == []
    assert task.created_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_task_rejects_unknown_status():
    with pytest.raises(ValueError):
        Task(title="x", status="blocked")


def test_attachment_timestamp_is_epoch_millis():
    stamp = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    task = Task(title="x", attachments=[
        Attachment(id="1", name="a.png", type="image", data="data:image/png;base64,AA==", created_at=stamp)
    ])
    wire = to_wire(task)

    assert wire["attachments"][0]["timestamp"] == int(stamp.timestamp() * 1000)
    back = from_wire(Task, wire)
    assert back.attachments[0].created_at == stamp
    assert back.attachments[0].data == "data:image/png;base64,AA=="


def test_idea_item_hash_is_renamed_at_the_boundary():
    item = IdeaItem(project_id="p", type="pdf", content="data:application/pdf;base64,AA==",
                    content_hash="ab" * 32)
    wire = to_wire(item)

    assert wire["hash"] == "ab" * 32
    assert "content_hash" not in wire
    assert wire["folder_id"] is None
    assert from_wire(IdeaItem, wire).content_hash == "ab" * 32


def test_folder_reads_legacy_camel_case_records():
    folder = from_wire(IdeaFolder, {"id": "f", "projectId": "p", "parentId": "root", "name": "Docs"})
    assert folder.project_id == "p"
    assert folder.parent_id == "root"


def test_voice_note_metadata_is_json_encoded():
    note = VoiceNote(audio_url="data:audio/webm;base64,AA==", transcription="buy milk",
                     summary="groceries", niche="Casa")
    wire = voice_note_to_wire(note)

    assert json.loads(wire["transcription"]) == {
        "transcription": "buy milk", "summary": "groceries", "niche": "Casa"
    }
    back = voice_note_from_wire(wire)
    assert (back.transcription, back.summary, back.niche) == ("buy milk", "groceries", "Casa")


def test_voice_note_plain_and_broken_transcriptions():
    plain = voice_note_from_wire({"id": "1", "audio_url": "u", "transcription": "hello"})
    assert plain.transcription == "hello"
    assert plain.summary is None

    broken = voice_note_from_wire({"id": "2", "audio_url": "u", "transcription": "{oops"})
    assert broken.transcription == "{oops"


def test_parse_timestamp_accepts_offsets_and_millis():
    assert parse_timestamp("2024-01-01T00:00:00+00:00") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp(None) is None


def test_patch_to_wire_renames_and_serializes():
    assert patch_to_wire(IdeaItem, {"content_hash": "ff"}) == {"hash": "ff"}

    att = Attachment(id="9", name="n", type="text", data="data:text/plain;base64,AA==",
                     created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    patch = patch_to_wire(Task, {"attachments": [att]})
    assert patch["attachments"][0]["name"] == "n"
    assert isinstance(patch["attachments"][0]["timestamp"], int)


def test_patch_to_wire_validates_fields():
    with pytest.raises(ValueError):
        patch_to_wire(Task, {"colour": "red"})
    with pytest.raises(ValueError):
        patch_to_wire(Task, {"status": "archived"})
    with pytest.raises(ValueError):
        patch_to_wire(Task, {"id": "other"})


def test_voice_note_patch_reencodes_metadata():
    patch = patch_to_wire(VoiceNote, {"transcription": "t", "summary": "s", "niche": None})
    assert json.loads(patch["transcription"]) == {"transcription": "t", "summary": "s", "niche": None}


def test_voice_note_patch_must_carry_all_packed_fields():
    with pytest.raises(ValueError):
        patch_to_wire(VoiceNote, {"summary": "s"})
    assert patch_to_wire(VoiceNote, {"audio_url": "u2"}) == {"audio_url": "u2"}


def test_fill_packed_fields_keeps_stored_metadata():
    stored = voice_note_to_wire(VoiceNote(audio_url="u", transcription="buy milk", summary="s", niche="Casa"))

    filled = fill_packed_fields(VoiceNote, stored, {"summary": "groceries"})

    assert filled == {"transcription": "buy milk", "summary": "groceries", "niche": "Casa"}
    assert fill_packed_fields(VoiceNote, stored, {"audio_url": "x"}) == {"audio_url": "x"}
    assert fill_packed_fields(Task, {}, {"status": "done"}) == {"status": "done"}


def test_parse_timestamp_accepts_postgres_short_fractions():
    assert parse_timestamp("2024-01-01T10:00:00.12+00:00") == datetime(2024, 1, 1, 10, 0, 0, 120000, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-01T10:00:00.1234567+00") == datetime(2024, 1, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-01") == datetime(2024, 1, 1)
