"""CLI entry point for the PDF to Markdown converter."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pagemark.config import load_config
from pagemark.tools.converter import convert_pdf
from pagemark.tools.image_materializer import ImageRegistry


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Reconstruct reading order and structure of a PDF as Markdown",
    )
    parser.add_argument("document", help="Path to the PDF to convert")
    parser.add_argument("--output-dir", "-o", default="", help="Output directory")
    parser.add_argument("--inline-images", action="store_true",
                        help="Embed images as data: URIs instead of writing assets")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--json", action="store_true", help="Output result as JSON")

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    cfg = load_config(image_handle_mode="data" if args.inline_images else None)
    registry = ImageRegistry(cfg.image_handle_mode, cfg.assets_dirname)

    document = Path(args.document)
    result = convert_pdf(document, cfg=cfg, registry=registry)

    if not result.success:
        if args.json:
            print(result.model_dump_json(indent=2))
        where = ""
        if result.failed_page_index is not None:
            where = f" (page {result.failed_page_index + 1})"
        print(f"\nConversion failed{where}: {result.error}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else document.parent
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{document.stem}.md"
    output_path.write_text(result.markdown, encoding="utf-8")
    registry.write_assets(output_dir)

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print(f"\nConversion complete!")
        print(f"  Input:    {document}")
        print(f"  Output:   {output_path}")
        print(f"  Pages:    {result.page_count}")
        print(f"  Images:   {len(result.images)}")
        print(f"  Time:     {result.processing_time_seconds:.1f}s")
        if result.warnings:
            print(f"\n  Warnings:")
            for warning in result.warnings:
                print(f"    - {warning}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
