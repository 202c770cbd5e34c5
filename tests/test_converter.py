"""Tests for whole-document conversion: ordering, failures, cancellation."""

import threading

from pagemark.config import ConverterConfig
from pagemark.errors import ConversionError
from pagemark.models.page import ColorKind, ConcatTransform, PaintNamedImage, RawImage
from pagemark.tools.converter import convert_document, convert_pdf
from pagemark.tools.image_materializer import ImageRegistry

from conftest import make_page, make_run


class TestConvertDocument:
    def test_single_page(self, cfg):
        result = convert_document([make_page(runs=[make_run("Hello world")])], cfg=cfg)
        assert result.success
        assert result.markdown == "Hello world\n\n"
        assert result.images == []
        assert result.page_count == 1
        assert result.error == ""

    def test_pages_joined_in_order(self, cfg):
        pages = [
            make_page(runs=[make_run("A")], page_number=1),
            make_page(runs=[make_run("B")], page_number=2),
        ]
        assert convert_document(pages, cfg=cfg).markdown == "A\n\n\n\nB\n\n"

    def test_empty_page_contributes_nothing(self, cfg):
        pages = [
            make_page(runs=[make_run("A")], page_number=1),
            make_page(page_number=2),
            make_page(runs=[make_run("B")], page_number=3),
        ]
        result = convert_document(pages, cfg=cfg)
        assert result.markdown == "A\n\n\n\nB\n\n"
        assert result.page_count == 3

    def test_no_pages(self, cfg):
        result = convert_document([], cfg=cfg)
        assert result.success
        assert result.markdown == ""

    def test_images_collected_across_pages(self, cfg):
        raw = RawImage(bytes([0] * 4), 2, 2, ColorKind.GRAYSCALE)
        ops = [ConcatTransform((50, 0, 0, 50, 72, 300)), PaintNamedImage("a")]
        pages = [
            make_page(runs=[make_run("one")], operators=ops, resolver=lambda n: raw, page_number=1),
            make_page(runs=[make_run("two")], operators=ops, resolver=lambda n: raw, page_number=2),
        ]
        result = convert_document(pages, cfg=cfg)
        assert list(result.image_table) == ["pdf_img_1_1", "pdf_img_2_1"]
        assert result.image_table["pdf_img_2_1"] == "assets/pdf_img_2_1.png"

    def test_uses_given_registry(self, cfg):
        raw = RawImage(bytes([0] * 4), 2, 2, ColorKind.GRAYSCALE)
        registry = ImageRegistry(mode="data")
        page = make_page(
            runs=[make_run("x")],
            operators=[ConcatTransform((50, 0, 0, 50, 72, 300)), PaintNamedImage("a")],
            resolver=lambda n: raw,
        )
        result = convert_document([page], cfg=cfg, registry=registry)
        assert len(registry) == 1
        assert result.images[0].src.startswith("data:image/png;base64,")

    def test_image_with_bad_dimensions_keeps_page_text(self, cfg):
        page = make_page(
            runs=[make_run("Still here")],
            operators=[ConcatTransform((50, 0, 0, 50, 72, 300)), PaintNamedImage("a")],
            resolver=lambda n: RawImage(bytes(15), width=2.5, height=2),
        )
        result = convert_document([page], cfg=cfg)
        assert result.success
        assert result.markdown == "Still here\n\n"
        assert result.images == []
        assert len(result.warnings) == 1

    def test_default_config(self, monkeypatch):
        monkeypatch.delenv("PAGEMARK_HEADER_HEIGHT", raising=False)
        result = convert_document([make_page(runs=[make_run("Hi")])])
        assert result.success


class TestConversionFailures:
    def test_invalid_page_height(self, cfg):
        pages = [
            make_page(runs=[make_run("fine")], page_number=1),
            make_page(runs=[make_run("broken")], page_number=2, height=0),
        ]
        result = convert_document(pages, cfg=cfg)
        assert not result.success
        assert result.failed_page_index == 1
        assert result.markdown == ""
        assert result.images == []
        assert "Conversion failed" in result.error

    def test_malformed_transform(self, cfg):
        page = make_page(operators=[ConcatTransform((1, 2))], page_number=1)
        result = convert_document([page], cfg=cfg)
        assert not result.success
        assert result.failed_page_index == 0

    def test_page_source_failure(self, cfg):
        def pages():
            yield make_page(runs=[make_run("ok")], page_number=1)
            raise ConversionError("bad xref table", page_index=1)

        result = convert_document(pages(), cfg=cfg)
        assert not result.success
        assert result.failed_page_index == 1
        assert "bad xref table" in result.error

    def test_unexpected_source_error(self, cfg):
        def pages():
            raise RuntimeError("disk gone")
            yield  # pragma: no cover

        result = convert_document(pages(), cfg=cfg)
        assert not result.success
        assert result.failed_page_index == 0
        assert "disk gone" in result.error

    def test_source_closed_after_failure(self, cfg):
        closed = []

        def pages():
            try:
                yield make_page(page_number=1, height=-5)
                yield make_page(page_number=2)
            finally:
                closed.append(True)

        result = convert_document(pages(), cfg=cfg)
        assert not result.success
        assert closed == [True]


class TestCancellation:
    def test_cancelled_before_start(self, cfg):
        event = threading.Event()
        event.set()
        result = convert_document([make_page(runs=[make_run("A")])], cfg=cfg, cancel_event=event)
        assert not result.success
        assert result.failed_page_index == 0
        assert "cancelled" in result.error

    def test_cancel_after_first_page(self, cfg):
        event = threading.Event()
        seen = []

        def pages():
            for n in (1, 2, 3):
                seen.append(n)
                if n == 2:
                    event.set()
                yield make_page(runs=[make_run(f"P{n}")], page_number=n)

        result = convert_document(pages(), cfg=cfg, cancel_event=event)
        assert not result.success
        assert result.failed_page_index == 2
        assert result.markdown == ""
        assert seen == [1, 2]


class TestConvertPdf:
    def test_missing_file(self, tmp_path):
        result = convert_pdf(tmp_path / "nope.pdf", cfg=ConverterConfig())
        assert not result.success
        assert "File not found" in result.error

    def test_wrong_extension(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        result = convert_pdf(path, cfg=ConverterConfig())
        assert not result.success
        assert "Not a .pdf file" in result.error

    def test_corrupt_pdf(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")
        result = convert_pdf(path, cfg=ConverterConfig())
        assert not result.success
        assert result.error
