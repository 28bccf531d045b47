"""
Unit tests for snapshot import strategies.
"""

import json
import pytest
from unittest.mock import patch

from echocards.models.deck import Deck
from echocards.services.backup.checksum import snapshot_checksum
from echocards.services.backup.exporter import SnapshotExporter
from echocards.services.backup.importer import SnapshotImporter, merge_by_id
from echocards.services.backup.models import ImportOptions, ImportStrategy, ValidationResult
from echocards.services.storage import InMemoryStorage
from echocards.utils.error_handler import DataPersistenceError


def _deck(deck_id, name=None):
    return {"id": deck_id, "name": name or f"Deck {deck_id}"}


def _card(card_id, deck_id="d1", **overrides):
    card = {
        "id": card_id,
        "deckId": deck_id,
        "question": f"Question {card_id}",
        "answer": f"Answer {card_id}",
        "dueDate": "2024-01-01T00:00:00+00:00",
        "stability": 2.5,
        "difficulty": 5,
        "lapses": 0,
        "reps": 1,
        "state": "REVIEW",
    }
    card.update(overrides)
    return card


def _snapshot(decks, cards, study_progress=None, preferences=None, checksum=True):
    snapshot = {
        "version": "1.0",
        "exportDate": "2024-01-02T00:00:00+00:00",
        "decks": decks,
        "cards": cards,
        "studyProgress": study_progress,
    }
    if preferences is not None:
        snapshot["preferences"] = preferences
    if checksum:
        snapshot["checksum"] = snapshot_checksum(snapshot)
    return snapshot


class TestMergeById:
    """Test the keyed union used by every strategy."""

    def test_overwrite_in_place(self):
        existing = [Deck(id="d1", name="Old"), Deck(id="d2", name="Keep")]
        incoming = [Deck(id="d1", name="New"), Deck(id="d3", name="Added")]

        merged, added, collided = merge_by_id(existing, incoming, overwrite=True)

        assert [(d.id, d.name) for d in merged] == [("d1", "New"), ("d2", "Keep"), ("d3", "Added")]
        assert (added, collided) == (1, 1)

    def test_keep_existing(self):
        existing = [Deck(id="d1", name="Old")]
        incoming = [Deck(id="d1", name="New"), Deck(id="d2", name="Added")]

        merged, added, collided = merge_by_id(existing, incoming, overwrite=False)

        assert [(d.id, d.name) for d in merged] == [("d1", "Old"), ("d2", "Added")]
        assert (added, collided) == (1, 1)

    def test_duplicates_within_incoming(self):
        incoming = [Deck(id="d1", name="First"), Deck(id="d1", name="Second")]

        merged, added, collided = merge_by_id([], incoming, overwrite=True)
        assert [d.name for d in merged] == ["Second"]
        assert (added, collided) == (1, 1)

        merged, _, _ = merge_by_id([], incoming, overwrite=False)
        assert [d.name for d in merged] == ["First"]


class TestSnapshotImporter:
    """Test cases for SnapshotImporter."""

    @pytest.fixture
    def storage(self):
        return InMemoryStorage(
            {
                "decks": [_deck("d1", "Old"), _deck("d2")],
                "cards": [_card("c1"), _card("c2", deck_id="d2")],
                "studyProgress": {"streak": 7},
                "voicePreference": "Kore",
                "conversationalMode": False,
            }
        )

    @pytest.fixture
    def importer(self, storage):
        return SnapshotImporter(storage)

    # ---------------------- Validation gates ----------------------
    def test_invalid_snapshot_rejected_without_writes(self, storage, importer):
        before = storage.dump()
        snapshot = _snapshot([_deck("d1")], [_card("c9", state="INVALID")])

        result = importer.import_snapshot(snapshot)

        assert result.success is False
        assert result.message.startswith("Validation failed: ")
        assert "Card c9 has invalid state: INVALID" in result.stats.errors
        assert storage.dump() == before

    def test_warnings_do_not_block(self, storage, importer):
        snapshot = _snapshot([_deck("d3")], [_card("c3", deck_id="d3", difficulty=15)])

        result = importer.import_snapshot(snapshot)

        assert result.success is True
        assert "Card c3 has invalid difficulty" in result.warnings
        assert [c["difficulty"] for c in storage.read_key("cards") if c["id"] == "c3"] == [15]

    def test_checksum_mismatch_rejected(self, storage, importer):
        before = storage.dump()
        snapshot = _snapshot([_deck("d3")], [_card("c3", deck_id="d3")])
        snapshot["cards"][0]["answer"] = "Tampered"

        result = importer.import_snapshot(snapshot, ImportOptions(strategy=ImportStrategy.REPLACE))

        assert result.success is False
        assert result.message == "Checksum verification failed - data may be corrupted"
        assert result.stats.errors == [result.message]
        assert storage.dump() == before

    def test_checksum_mismatch_ignored_when_verification_off(self, importer):
        snapshot = _snapshot([_deck("d3")], [_card("c3", deck_id="d3")])
        snapshot["cards"][0]["answer"] = "Tampered"

        result = importer.import_snapshot(snapshot, ImportOptions(verify_checksum=False))
        assert result.success is True

    def test_snapshot_without_checksum_accepted(self, importer):
        snapshot = _snapshot([_deck("d3")], [], checksum=False)
        assert importer.import_snapshot(snapshot).success is True

    def test_dry_run_changes_nothing(self, storage, importer):
        before = storage.dump()
        snapshot = _snapshot([_deck("d1", "New"), _deck("d9")], [_card("c9", deck_id="d9")])

        for strategy in ImportStrategy:
            result = importer.import_snapshot(snapshot, ImportOptions(strategy=strategy, dry_run=True))

            assert result.success is True
            assert result.message == "Validation successful (dry run)"
            assert result.stats.decks_imported == 2
            assert result.stats.cards_imported == 1
            assert storage.dump() == before

    # ---------------------- Strategies ----------------------
    def test_replace(self, storage, importer):
        snapshot = _snapshot(
            [_deck("d3", "Fresh")],
            [_card("c3", deck_id="d3")],
            study_progress={"streak": 1},
        )

        result = importer.import_snapshot(snapshot, ImportOptions(strategy=ImportStrategy.REPLACE))

        assert result.success is True
        assert result.message == "Successfully imported 1 decks and 1 cards"
        assert [d.id for d in storage.get_decks()] == ["d3"]
        assert [c.id for c in storage.get_cards()] == ["c3"]
        assert storage.get_study_progress() == {"streak": 1}

    def test_replace_without_progress_clears_it(self, storage, importer):
        snapshot = _snapshot([_deck("d3")], [])

        importer.import_snapshot(snapshot, ImportOptions(strategy=ImportStrategy.REPLACE))
        assert storage.get_study_progress() is None

    def test_replace_is_idempotent(self, storage, importer):
        snapshot = _snapshot([_deck("d3"), _deck("d4")], [_card("c3", deck_id="d3"), _card("c4", deck_id="d4")])
        options = ImportOptions(strategy=ImportStrategy.REPLACE)

        importer.import_snapshot(snapshot, options)
        first = storage.dump()
        importer.import_snapshot(snapshot, options)

        assert storage.dump() == first

    def test_merge_overwrites_colliding_ids(self, storage, importer):
        snapshot = _snapshot([_deck("d1", "New")], [])

        result = importer.import_snapshot(snapshot, ImportOptions(strategy=ImportStrategy.MERGE))

        assert result.success is True
        assert [(d.id, d.name) for d in storage.get_decks()] == [("d1", "New"), ("d2", "Deck d2")]
        assert result.stats.decks_imported == 0
        assert result.stats.decks_skipped == 1
        assert result.to_dict()["stats"]["decksSkipped"] == 1

    def test_merge_adds_new_and_keeps_progress_when_absent(self, storage, importer):
        snapshot = _snapshot([_deck("d3")], [_card("c1", answer="Updated"), _card("c3", deck_id="d3")])

        result = importer.import_snapshot(snapshot, ImportOptions(strategy=ImportStrategy.MERGE))

        cards = {c.id: c for c in storage.get_cards()}
        assert list(cards) == ["c1", "c2", "c3"]
        assert cards["c1"].answer == "Updated"
        assert result.stats.cards_imported == 1
        assert result.stats.cards_skipped == 1
        assert storage.get_study_progress() == {"streak": 7}

    def test_merge_replaces_progress_when_present(self, storage, importer):
        snapshot = _snapshot([], [], study_progress={"streak": 1})

        importer.import_snapshot(snapshot, ImportOptions(strategy=ImportStrategy.MERGE))
        assert storage.get_study_progress() == {"streak": 1}

    def test_skip_keeps_existing(self, storage, importer):
        snapshot = _snapshot(
            [_deck("d1", "New"), _deck("d3")],
            [_card("c3", deck_id="d3")],
            study_progress={"streak": 1},
        )

        result = importer.import_snapshot(snapshot, ImportOptions(strategy=ImportStrategy.SKIP))

        assert result.success is True
        assert [(d.id, d.name) for d in storage.get_decks()] == [("d1", "Old"), ("d2", "Deck d2"), ("d3", "Deck d3")]
        assert result.stats.decks_imported == 1
        assert result.stats.decks_skipped == 1
        assert result.stats.cards_imported == 1
        assert storage.get_study_progress() == {"streak": 7}

    @pytest.mark.parametrize("strategy", [ImportStrategy.MERGE, ImportStrategy.SKIP])
    def test_unreadable_stored_records_survive(self, strategy):
        suspended = _card("c2", state="SUSPENDED")
        storage = InMemoryStorage(
            {
                "decks": [_deck("d1"), {"id": "d2"}],
                "cards": [_card("c1"), suspended],
            }
        )
        snapshot = _snapshot([_deck("d3")], [_card("c3", deck_id="d3")])

        result = SnapshotImporter(storage).import_snapshot(snapshot, ImportOptions(strategy=strategy))

        assert result.success is True
        assert [c["id"] for c in storage.read_key("cards")] == ["c1", "c2", "c3"]
        assert storage.read_key("cards")[1] == suspended
        assert storage.read_key("decks")[1] == {"id": "d2"}

    def test_merge_overwrites_unreadable_stored_record(self):
        storage = InMemoryStorage({"decks": [_deck("d1")], "cards": [_card("c1", state="SUSPENDED")]})
        snapshot = _snapshot([], [_card("c1", answer="Fixed")])

        result = SnapshotImporter(storage).import_snapshot(snapshot, ImportOptions(strategy=ImportStrategy.MERGE))

        assert result.stats.cards_skipped == 1
        assert [(c.id, c.answer) for c in storage.get_cards()] == [("c1", "Fixed")]

    def test_orphaned_cards_are_imported(self, storage, importer):
        snapshot = _snapshot([], [_card("c9", deck_id="nowhere")])

        result = importer.import_snapshot(snapshot)

        assert result.success is True
        assert "Found 1 orphaned cards (no matching deck)" in result.warnings
        assert "c9" in [c.id for c in storage.get_cards()]

    # ---------------------- Preferences ----------------------
    @pytest.mark.parametrize("strategy", list(ImportStrategy))
    def test_preferences_applied_when_present(self, storage, importer, strategy):
        snapshot = _snapshot([], [], preferences={"voicePreference": "Puck", "conversationalMode": True})

        importer.import_snapshot(snapshot, ImportOptions(strategy=strategy))

        assert storage.read_key("voicePreference") == "Puck"
        assert storage.read_key("conversationalMode") is True

    def test_preferences_untouched_when_absent(self, storage, importer):
        importer.import_snapshot(_snapshot([], []), ImportOptions(strategy=ImportStrategy.REPLACE))
        assert storage.read_key("voicePreference") == "Kore"

    def test_preference_edit_does_not_break_checksum(self, storage, importer):
        snapshot = _snapshot([], [], preferences={"voicePreference": "Puck", "conversationalMode": False})
        snapshot["preferences"]["voicePreference"] = "Orus"

        result = importer.import_snapshot(snapshot)

        assert result.success is True
        assert storage.read_key("voicePreference") == "Orus"

    # ---------------------- Failures ----------------------
    def test_storage_failure_reported_and_rolled_back(self, storage, importer):
        before = storage.dump()
        original_write = storage.write_key

        def failing_write(key, value):
            if key == "cards":
                raise OSError("disk full")
            original_write(key, value)

        snapshot = _snapshot([_deck("d3")], [_card("c3", deck_id="d3")])
        with patch.object(storage, "write_key", side_effect=failing_write):
            result = importer.import_snapshot(snapshot, ImportOptions(strategy=ImportStrategy.REPLACE))

        assert result.success is False
        assert "disk full" in result.message
        assert result.stats.errors == [result.message]
        assert storage.dump() == before

    def test_unreadable_store_reported(self, storage, importer):
        with patch.object(storage, "read_records", side_effect=DataPersistenceError("unreadable")):
            result = importer.import_snapshot(_snapshot([_deck("d3")], []))

        assert result.success is False
        assert "Failed to merge data" in result.message

    def test_unconvertible_record_reported(self, storage, importer):
        before = storage.dump()
        snapshot = _snapshot([_deck("d1")], [_card("c9", state="BOGUS")])

        result = importer.import_snapshot(snapshot, validation=ValidationResult(valid=True))

        assert result.success is False
        assert "Invalid record in backup" in result.message
        assert storage.dump() == before


class TestRoundTrip:
    """Export followed by import reproduces the data set."""

    def test_export_then_replace_into_empty_store(self):
        source = InMemoryStorage(
            {
                "decks": [_deck("d1", "Español"), _deck("d2")],
                "cards": [_card("c1", explanation="¿Por qué?"), _card("c2", deck_id="d2", stability=3.0)],
                "studyProgress": {"streak": 3, "history": [1, 2]},
                "voicePreference": "Leda",
                "conversationalMode": True,
            }
        )
        exported = SnapshotExporter(source).to_json()

        target = InMemoryStorage()
        result = SnapshotImporter(target).import_snapshot(
            json.loads(exported), ImportOptions(strategy=ImportStrategy.REPLACE)
        )

        assert result.success is True
        assert target.read_key("decks") == source.read_key("decks")
        assert target.read_key("cards") == source.read_key("cards")
        assert target.get_study_progress() == source.get_study_progress()
        assert target.get_preferences() == source.get_preferences()

        reexported = json.loads(SnapshotExporter(target).to_json())
        original = json.loads(exported)
        for key in ("decks", "cards", "studyProgress", "preferences", "checksum"):
            assert reexported[key] == original[key]
