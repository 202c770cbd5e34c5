"""Tests for data models: creation, derived geometry, immutability, field exclusion."""

import pytest
from pydantic import ValidationError

from pagemark.models.page import (
    IDENTITY,
    ImagePlacement,
    Line,
    ProcessedLine,
    TextRun,
)
from pagemark.models.result import ConversionResult, ExtractedImage


class TestTextRun:
    def test_create_minimal(self):
        run = TextRun(content="hello")
        assert run.transform == IDENTITY
        assert run.height is None
        assert run.width is None

    def test_geometry_from_transform(self):
        run = TextRun(content="x", transform=[11, 0, 0, 11, 72, 500], width=6)
        assert run.x == 72
        assert run.baseline_y == 500
        assert run.advance == 6

    def test_font_size_prefers_height(self):
        run = TextRun(content="x", transform=(11, 0, 0, 11, 0, 0), height=14)
        assert run.font_size == 14

    def test_font_size_falls_back_to_vertical_scale(self):
        run = TextRun(content="x", transform=(11, 0, 0, 13, 0, 0))
        assert run.font_size == 13

    def test_font_size_defaults_to_ten(self):
        run = TextRun(content="x", transform=(0, 0, 0, 0, 0, 0))
        assert run.font_size == 10

    def test_advance_defaults_to_zero(self):
        assert TextRun(content="x").advance == 0.0

    def test_immutable(self):
        run = TextRun(content="test")
        with pytest.raises(ValidationError):
            run.content = "changed"

    def test_transform_must_have_six_values(self):
        with pytest.raises(ValidationError):
            TextRun(content="x", transform=(1, 0, 0, 1))


class TestImagePlacement:
    def test_immutable(self):
        placement = ImagePlacement(
            id="pdf_img_1_0", width_px=10, height_px=10, matrix=IDENTITY, visual_top=1.0,
        )
        with pytest.raises(ValidationError):
            placement.visual_top = 5.0


class TestLines:
    def test_image_line(self):
        line = Line(y=300.0, kind="image", image_id="pdf_img_1_3")
        assert line.is_image
        assert line.runs == ()

    def test_processed_heading(self):
        line = ProcessedLine(kind="text", y=700.0, text="Title", prefix="# ")
        assert line.is_heading

    def test_processed_body(self):
        line = ProcessedLine(kind="text", y=700.0, text="Body")
        assert not line.is_heading


class TestExtractedImage:
    def test_png_data_excluded_from_dump(self):
        img = ExtractedImage(id="pdf_img_1_0", src="assets/pdf_img_1_0.png", png_data=b"\x89PNG")
        dumped = img.model_dump()
        assert "png_data" not in dumped
        assert dumped["src"] == "assets/pdf_img_1_0.png"

    def test_png_data_excluded_from_json_str(self):
        img = ExtractedImage(id="pdf_img_1_0", src="x", png_data=b"bytes here")
        json_str = img.model_dump_json()
        assert "bytes here" not in json_str

    def test_png_data_still_accessible(self):
        img = ExtractedImage(id="pdf_img_1_0", src="x", png_data=b"\x89PNG")
        assert img.png_data == b"\x89PNG"


class TestConversionResult:
    def test_defaults_to_failure(self):
        result = ConversionResult()
        assert result.success is False
        assert result.markdown == ""
        assert result.failed_page_index is None

    def test_image_table_keeps_order(self):
        result = ConversionResult(
            success=True,
            images=[
                ExtractedImage(id="pdf_img_2_5", src="b"),
                ExtractedImage(id="pdf_img_1_9", src="a"),
            ],
        )
        assert list(result.image_table.items()) == [("pdf_img_2_5", "b"), ("pdf_img_1_9", "a")]
