"""
Unit tests for gallery naming and file handling.
"""

from datetime import datetime

import pytest

from lora_catalog.actions import GalleryManager, gallery_file_name, rewrite_gallery_names, safe_prefix
from lora_catalog.catalog import CatalogRecord
from lora_catalog.utils.exceptions import InvalidNameError, NotFoundError


class TestGalleryNames:
    """Tests for the pure naming helpers."""

    def test_safe_prefix(self):
        assert safe_prefix("style/anime/cel") == "style_anime_cel"
        assert safe_prefix("a\\b") == "a_b"

    def test_rewrite_owned_names(self):
        names = ["style_cel_1.png", "style_cel_2.jpg"]

        result = rewrite_gallery_names("style/cel", "new/flat", names)

        assert result == ["new_flat_1.png", "new_flat_2.jpg"]

    def test_rewrite_keeps_foreign_names(self):
        names = ["other_1.png", "style_cel_1.png", "style_celx_2.png"]

        result = rewrite_gallery_names("style/cel", "flat", names)

        assert result == ["other_1.png", "flat_1.png", "style_celx_2.png"]

    def test_rewrite_is_pure(self):
        names = ["cel_1.png"]

        rewrite_gallery_names("cel", "flat", names)

        assert names == ["cel_1.png"]

    def test_gallery_file_name(self):
        when = datetime(2024, 3, 5, 14, 7, 9)

        assert gallery_file_name("style/cel", ".png", when) == "style_cel_20240305140709.png"


class TestGalleryManager:
    """Tests for GalleryManager file handling."""

    def test_add_image(self, gallery, gallery_dir, tmp_path):
        source = tmp_path / "preview.PNG"
        source.write_bytes(b"img")
        record = CatalogRecord(path="style/cel")

        name = gallery.add_image(source, record)

        assert name.startswith("style_cel_")
        assert name.endswith(".PNG")
        assert record.gallery == [name]
        assert (gallery_dir / name).read_bytes() == b"img"

    def test_add_non_image(self, gallery, tmp_path):
        source = tmp_path / "notes.txt"
        source.write_text("x")

        with pytest.raises(InvalidNameError):
            gallery.add_image(source, CatalogRecord(path="cel"))

    def test_add_missing_source(self, gallery, tmp_path):
        with pytest.raises(NotFoundError):
            gallery.add_image(tmp_path / "missing.png", CatalogRecord(path="cel"))

    def test_resolve(self, gallery, gallery_dir):
        (gallery_dir / "cel_1.png").write_bytes(b"x")
        record = CatalogRecord(path="cel", gallery=["cel_1.png", "cel_2.png"])

        images = gallery.resolve(record)

        assert [image.exists for image in images] == [True, False]
        assert images[0].full_path == gallery_dir / "cel_1.png"
        assert gallery.resolve(None) == []

    def test_rename_images(self, gallery, gallery_dir):
        (gallery_dir / "style_cel_1.png").write_bytes(b"x")
        record = CatalogRecord(path="style/cel", gallery=["style_cel_1.png", "style_cel_2.png", "misc.png"])

        updated = gallery.rename_images("style/cel", "flat", record)

        assert updated == ["flat_1.png", "flat_2.png", "misc.png"]
        assert record.gallery == updated
        assert (gallery_dir / "flat_1.png").exists()
        assert not (gallery_dir / "style_cel_1.png").exists()

    def test_rename_images_keeps_taken_name(self, gallery, gallery_dir):
        (gallery_dir / "cel_1.png").write_bytes(b"old")
        (gallery_dir / "flat_1.png").write_bytes(b"other")
        record = CatalogRecord(path="cel", gallery=["cel_1.png"])

        updated = gallery.rename_images("cel", "flat", record)

        assert updated == ["cel_1.png"]
        assert (gallery_dir / "cel_1.png").read_bytes() == b"old"
        assert (gallery_dir / "flat_1.png").read_bytes() == b"other"

    def test_delete_images(self, gallery, gallery_dir):
        (gallery_dir / "a.png").write_bytes(b"x")

        assert gallery.delete_images(["a.png", "never-existed.png"])
        assert not (gallery_dir / "a.png").exists()

    def test_is_image_file(self):
        manager = GalleryManager("unused", image_extensions=[".png"])

        assert manager.is_image_file("x.PNG")
        assert not manager.is_image_file("x.jpg")
