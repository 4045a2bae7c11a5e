import argparse
import json
import logging
import os
import sys

from backend import config
from backend.overlay.font_metrics import FontMetrics, FontNotFoundError
from backend.overlay.text_overlay import PdfCanvas
from backend.translation.translator import TranslationError, list_models, translate_pdf
from backend.typesetter import TypesetOptions, typeset_document


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Manga PDF Translation Pipeline")
    parser.add_argument("input", nargs="?", help="Path to the manga PDF")
    parser.add_argument("-o", "--output", help="Output PDF path (default: <input>_translated.pdf)")
    parser.add_argument("--segments", help="JSON file with already translated segments (skips Gemini)")
    parser.add_argument("--save-segments", help="Write the segments returned by Gemini to this JSON file")
    parser.add_argument("--font", default=config.FONT_PATH, help="TTF font used for the translated text")
    parser.add_argument("--font-size", type=float, default=TypesetOptions.start_font_size,
                        help="Starting font size before auto-fit")
    parser.add_argument("--min-font-size", type=float, default=TypesetOptions.min_font_size)
    parser.add_argument("--anchor", choices=["center", "top"], default="center",
                        help="Vertical placement of the text inside each patch")
    parser.add_argument("--no-collisions", action="store_true",
                        help="Keep every patch at its detected position")
    parser.add_argument("--list-models", action="store_true",
                        help="List Gemini models that support generateContent and exit")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def default_output_path(input_path):
    base, _ = os.path.splitext(input_path)
    return base + "_translated.pdf"


def load_segments(path):
    with open(path, "r", encoding="utf-8") as f:
        segments = json.load(f)
    if not isinstance(segments, list):
        raise ValueError(f"{path} must contain a JSON list of segments")
    return segments


def run_pipeline(args):
    if not os.path.isfile(args.input):
        print(f"❌ Error: The file '{args.input}' does not exist.")
        return 1

    output_path = args.output or default_output_path(args.input)
    options = TypesetOptions(
        start_font_size=args.font_size,
        min_font_size=args.min_font_size,
        avoid_collisions=not args.no_collisions,
        vertical_anchor=args.anchor,
    )

    measure = FontMetrics(args.font)
    with open(args.input, "rb") as f:
        pdf_bytes = f.read()

    with PdfCanvas.from_bytes(pdf_bytes, measure.font_path) as canvas:
        print(f"📄 {os.path.basename(args.input)}: {canvas.page_count} pages")

        if args.segments:
            print(f"\n[1/2] Loading segments from {args.segments}...")
            segments = load_segments(args.segments)
        else:
            print(f"\n[1/2] Translating with {config.GEMINI_MODEL}...")
            segments = translate_pdf(args.input, display_name=os.path.basename(args.input))
            if args.save_segments:
                with open(args.save_segments, "w", encoding="utf-8") as f:
                    json.dump(segments, f, indent=2, ensure_ascii=False)
                print(f"   Saved segments to {args.save_segments}")

        print(f"\n[2/2] Typesetting {len(segments)} segments...")
        report = typeset_document(canvas, segments, measure, options)

        with open(output_path, "wb") as f:
            f.write(canvas.to_bytes())

    print("\n" + "=" * 50)
    print("🎉 PIPELINE COMPLETE!")
    print(f"   Rendered: {report.rendered}  Skipped: {len(report.skipped)}  Degraded: {report.degraded}")
    print(f"   Output: {output_path}")
    print("=" * 50)
    return 0


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format=config.LOG_FORMAT,
    )

    try:
        if args.list_models:
            print("\n✅ Available models:")
            print("=" * 34)
            for name in list_models():
                print(f"🔹 {name}")
            print("=" * 34)
            return 0

        if not args.input:
            print("❌ Error: an input PDF is required (or use --list-models).")
            return 2

        return run_pipeline(args)
    except (TranslationError, FontNotFoundError, ValueError, OSError) as e:
        print(f"❌ Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
