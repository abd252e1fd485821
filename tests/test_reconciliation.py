"""
Unit tests for the reconciliation engine.
"""

import json

import pytest

from lora_catalog.catalog import CatalogRecord, StoredFingerprint
from lora_catalog.identity import fingerprint
from lora_catalog.reconciliation import ValidityState
from lora_catalog.utils.exceptions import IOFailureError, NotFoundError

from conftest import write_model


class TestEvaluate:
    """Tests for ReconciliationEngine.evaluate."""

    def test_missing_entry_file_exists(self, engine, models_dir):
        write_model(models_dir, "new")

        verdict = engine.evaluate("new")

        assert verdict.state is ValidityState.MISSING_ENTRY_FILE_EXISTS
        assert verdict.record is None
        assert verdict.live_fingerprint is not None
        assert verdict.can_accept

    def test_uppercase_extension_is_found(self, engine, store, models_dir):
        full_path = models_dir / "Cel.SAFETENSORS"
        full_path.write_bytes(b"model-bytes")

        verdict = engine.evaluate("Cel")

        assert verdict.state is ValidityState.MISSING_ENTRY_FILE_EXISTS
        assert verdict.file_path == full_path

        engine.accept_live_fingerprint("Cel")

        assert engine.evaluate("Cel").is_valid
        assert store.get("Cel").fingerprint == StoredFingerprint.of(fingerprint(full_path))

    def test_file_missing(self, engine, store):
        store.add("gone", CatalogRecord(fingerprint=StoredFingerprint.of("0" * 40)))

        verdict = engine.evaluate("gone")

        assert verdict.state is ValidityState.FILE_MISSING
        assert verdict.live_fingerprint is None
        assert not verdict.can_accept

    def test_neither_file_nor_record(self, engine):
        verdict = engine.evaluate("nothing")

        assert verdict.state is ValidityState.NEW_UNCATALOGED

    def test_id_unset(self, engine, store, models_dir):
        write_model(models_dir, "cel")
        store.add("cel", CatalogRecord(fingerprint=StoredFingerprint.unset()))

        assert engine.evaluate("cel").state is ValidityState.ID_UNSET

    def test_absent_fingerprint_is_unset(self, engine, store, models_dir):
        write_model(models_dir, "cel")
        store.add("cel", CatalogRecord())

        assert engine.evaluate("cel").state is ValidityState.ID_UNSET

    def test_id_mismatch(self, engine, store, models_dir):
        write_model(models_dir, "cel", b"new content")
        store.add("cel", CatalogRecord(fingerprint=StoredFingerprint.of("0" * 40)))

        assert engine.evaluate("cel").state is ValidityState.ID_MISMATCH

    def test_valid(self, engine, store, models_dir):
        full_path = write_model(models_dir, "style/cel")
        store.add("style/cel", CatalogRecord(fingerprint=StoredFingerprint.of(fingerprint(full_path))))

        verdict = engine.evaluate("style/cel")

        assert verdict.is_valid
        assert verdict.file_path == full_path

    def test_file_vanishes_while_fingerprinting(self, engine, store, models_dir, monkeypatch):
        """A file deleted between the existence check and the read counts as missing."""
        write_model(models_dir, "cel")
        store.add("cel", CatalogRecord())

        def vanish(path):
            raise NotFoundError("gone", file_path=str(path))

        monkeypatch.setattr(engine.fingerprinter, "compute", vanish)

        assert engine.evaluate("cel").state is ValidityState.FILE_MISSING

    def test_read_failure_propagates(self, engine, store, models_dir, monkeypatch):
        """An unreadable file is an error, never a mismatch."""
        write_model(models_dir, "cel")
        store.add("cel", CatalogRecord(fingerprint=StoredFingerprint.of("0" * 40)))

        def unreadable(path):
            raise IOFailureError("denied", file_path=str(path), operation="fingerprint")

        monkeypatch.setattr(engine.fingerprinter, "compute", unreadable)

        with pytest.raises(IOFailureError):
            engine.evaluate("cel")

    def test_evaluate_does_not_mutate(self, engine, store, models_dir, catalog_path):
        write_model(models_dir, "cel")
        store.add("cel", CatalogRecord(fingerprint=StoredFingerprint.unset()))

        engine.evaluate("cel")
        engine.evaluate("new")

        assert store.get("cel").fingerprint == StoredFingerprint.unset()
        assert store.paths() == ["cel"]
        assert not catalog_path.exists()

    def test_verdict_to_dict(self, engine, store):
        store.add("gone", CatalogRecord(fingerprint=StoredFingerprint.unset()))

        data = engine.evaluate("gone").to_dict()

        assert data["state"] == "file_missing"
        assert data["has_record"] is True
        assert data["stored_fingerprint"] == "unknown"
        assert data["live_fingerprint"] is None


class TestAcceptLiveFingerprint:
    """Tests for accepting the live fingerprint."""

    def test_accept_unset(self, engine, store, models_dir):
        full_path = write_model(models_dir, "cel")
        store.add("cel", CatalogRecord(active_triggers="keep me", fingerprint=StoredFingerprint.unset()))

        verdict = engine.accept_live_fingerprint("cel")

        assert verdict.is_valid
        record = store.get("cel")
        assert record.fingerprint.value == fingerprint(full_path)
        assert record.active_triggers == "keep me"
        assert record.fingerprint_valid
        assert engine.evaluate("cel").is_valid

    def test_accept_mismatch(self, engine, store, models_dir):
        full_path = write_model(models_dir, "cel")
        store.add("cel", CatalogRecord(fingerprint=StoredFingerprint.of("0" * 40)))

        engine.accept_live_fingerprint("cel")

        assert store.get("cel").fingerprint.value == fingerprint(full_path)

    def test_accept_creates_record(self, engine, store, models_dir):
        write_model(models_dir, "new")

        verdict = engine.accept_live_fingerprint("new")

        assert verdict.is_valid
        assert "new" in store
        assert store.get("new").path == "new"

    def test_register_uses_template(self, engine, store, models_dir):
        write_model(models_dir, "downloaded")
        template = CatalogRecord(source_url="https://example.com/m", active_triggers="trig")

        engine.register("downloaded", template)

        record = store.get("downloaded")
        assert record.source_url == "https://example.com/m"
        assert record.fingerprint.is_set

    def test_accept_valid_is_noop(self, engine, store, models_dir):
        full_path = write_model(models_dir, "cel")
        stored = StoredFingerprint.of(fingerprint(full_path))
        store.add("cel", CatalogRecord(fingerprint=stored))

        verdict = engine.accept_live_fingerprint("cel")

        assert verdict.is_valid
        assert store.get("cel").fingerprint == stored

    def test_accept_valid_refreshes_stale_record(self, engine, store, models_dir):
        full_path = write_model(models_dir, "cel")
        record = store.add("cel", CatalogRecord(fingerprint=StoredFingerprint.of(fingerprint(full_path))))
        record.file_exists = False
        record.fingerprint_valid = False
        record.fingerprint_error = "read failed"

        engine.accept_live_fingerprint("cel")

        assert record.file_exists
        assert record.fingerprint_valid
        assert record.live_fingerprint == fingerprint(full_path)
        assert record.fingerprint_error is None

    def test_accept_missing_file(self, engine, store):
        store.add("gone", CatalogRecord(fingerprint=StoredFingerprint.unset()))

        with pytest.raises(NotFoundError):
            engine.accept_live_fingerprint("gone")

        assert store.get("gone").fingerprint == StoredFingerprint.unset()

    def test_accept_does_not_save(self, engine, models_dir, catalog_path):
        write_model(models_dir, "new")

        engine.accept_live_fingerprint("new")

        assert not catalog_path.exists()

    def test_accepted_value_survives_save(self, engine, store, models_dir, catalog_path):
        full_path = write_model(models_dir, "new")

        engine.accept_live_fingerprint("new")
        store.save()

        data = json.loads(catalog_path.read_text(encoding="utf-8"))
        assert data["new"]["file_id"] == fingerprint(full_path)


class TestEvaluateAll:
    """Tests for whole-library reconciliation."""

    def test_union_of_scanned_and_cataloged(self, engine, store, models_dir):
        full_path = write_model(models_dir, "ok")
        write_model(models_dir, "new")
        store.add("ok", CatalogRecord(fingerprint=StoredFingerprint.of(fingerprint(full_path))))
        store.add("gone", CatalogRecord())

        verdicts = {verdict.logical_path: verdict.state for verdict in engine.evaluate_all()}

        assert verdicts == {
            "gone": ValidityState.FILE_MISSING,
            "new": ValidityState.MISSING_ENTRY_FILE_EXISTS,
            "ok": ValidityState.VALID,
        }

    def test_given_paths(self, engine, models_dir):
        write_model(models_dir, "a")
        write_model(models_dir, "b")

        verdicts = engine.evaluate_all(scanned_paths=["b"])

        assert [verdict.logical_path for verdict in verdicts] == ["b"]
