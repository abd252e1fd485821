"""
Unit tests for the path scanner.
"""

from lora_catalog.discovery import PathScanner, scan, to_logical_path

from conftest import write_model


class TestPathScanner:
    """Tests for PathScanner."""

    def test_nonexistent_root(self, tmp_path):
        """A missing root is an empty library, not an error."""
        assert scan(tmp_path / "missing") == []

    def test_empty_root(self, models_dir):
        assert scan(models_dir) == []

    def test_finds_nested_files(self, models_dir):
        write_model(models_dir, "style/anime/cel")
        write_model(models_dir, "character")

        assert scan(models_dir) == ["character", "style/anime/cel"]

    def test_extension_case_insensitive(self, models_dir):
        (models_dir / "upper.SAFETENSORS").write_bytes(b"x")
        (models_dir / "mixed.SafeTensors").write_bytes(b"x")

        assert scan(models_dir) == ["mixed", "upper"]

    def test_ignores_other_extensions(self, models_dir):
        write_model(models_dir, "keep")
        (models_dir / "preview.png").write_bytes(b"x")
        (models_dir / "notes.txt").write_bytes(b"x")
        (models_dir / "model.ckpt").write_bytes(b"x")
        (models_dir / "trap.safetensors.bak").write_bytes(b"x")

        assert scan(models_dir) == ["keep"]

    def test_sorted_by_code_point(self, models_dir):
        for name in ["b", "B", "a", "_x"]:
            write_model(models_dir, name)

        assert scan(models_dir) == ["B", "_x", "a", "b"]

    def test_ignores_empty_directories(self, models_dir):
        (models_dir / "empty" / "deeper").mkdir(parents=True)

        assert scan(models_dir) == []

    def test_custom_extension(self, models_dir):
        (models_dir / "a.ckpt").write_bytes(b"x")
        write_model(models_dir, "b")

        assert PathScanner("ckpt").scan(models_dir) == ["a"]

    def test_scan_directories(self, models_dir):
        (models_dir / "empty").mkdir()
        write_model(models_dir, "style/anime/cel")

        assert PathScanner().scan_directories(models_dir) == ["empty", "style", "style/anime"]

    def test_full_path(self, models_dir):
        full_path = PathScanner().full_path(models_dir, "style/cel")

        assert full_path == models_dir / "style" / "cel.safetensors"

    def test_full_path_matches_extension_case(self, models_dir):
        (models_dir / "style").mkdir()
        (models_dir / "style" / "Cel.SafeTensors").write_bytes(b"x")

        scanner = PathScanner()

        assert scanner.full_path(models_dir, "style/Cel") == models_dir / "style" / "Cel.SafeTensors"
        assert scanner.full_path(models_dir, "style/cel") == models_dir / "style" / "cel.safetensors"


class TestToLogicalPath:
    """Tests for logical path conversion."""

    def test_backslashes_converted(self):
        assert to_logical_path("style\\anime\\cel.safetensors", ".safetensors") == "style/anime/cel"

    def test_extension_stripped_case_insensitive(self):
        assert to_logical_path("cel.SAFETENSORS", ".safetensors") == "cel"

    def test_no_extension(self):
        assert to_logical_path("a/b") == "a/b"
