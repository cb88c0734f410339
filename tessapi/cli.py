from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

from PIL import Image

from .pipeline import recognize_images, recognize_pdf
from .types import PageIteratorLevel


def _add_common_args(p: argparse.ArgumentParser) -> None:
  p.add_argument(
      "--level",
      default=PageIteratorLevel.WORD.value,
      choices=[m.value for m in PageIteratorLevel],
      help="Layout level to emit one element per",
  )
  p.add_argument("--lang", default=None, help="Tesseract language(s), e.g. eng or eng+deu")
  p.add_argument("--datapath", default=None, help="tessdata directory (default: TESSDATA_PREFIX)")
  p.add_argument("--psm", type=int, default=None, help="Page segmentation mode")
  p.add_argument("--output", type=str, default=None, help="Path to write JSON output")
  p.add_argument("-v", "--verbose", action="store_true")
  p.epilog = (
      "Note: libtesseract is located via TESSAPI_LIBRARY, then the system "
      "library path."
  )


def _cfg_from_args(args: argparse.Namespace) -> dict[str, Any]:
  cfg: dict[str, Any] = {}
  if args.lang:
    cfg["lang"] = args.lang
  if args.datapath:
    cfg["datapath"] = args.datapath
  if args.psm is not None:
    cfg["psm"] = args.psm
  return cfg


def _emit_output(payload: dict[str, Any], output_path: str | None) -> None:
  text = json.dumps(payload, ensure_ascii=False, indent=2)
  if output_path:
    Path(output_path).write_text(text, encoding="utf-8")
  else:
    print(text)


def cmd_pdf(args: argparse.Namespace) -> int:
  res = recognize_pdf(
      path=args.path,
      level=args.level,
      cfg=_cfg_from_args(args),
      dpi=args.dpi,
      first_page=args.first_page,
      last_page=args.last_page,
  )
  payload = {"input_path": args.path, **dataclasses.asdict(res)}
  _emit_output(payload, args.output)
  return 0


def cmd_image(args: argparse.Namespace) -> int:
  image_paths = [args.path] if Path(args.path).is_file() else sorted(str(p) for p in Path(args.path).glob("*.png"))
  if not image_paths:
    raise FileNotFoundError(f"No images found at {args.path}")
  images = [Image.open(p) for p in image_paths]
  res = recognize_images(images, level=args.level, cfg=_cfg_from_args(args))
  payload = {"input_path": args.path, "images": image_paths, **dataclasses.asdict(res)}
  _emit_output(payload, args.output)
  return 0


def main(argv: list[str] | None = None) -> int:
  parser = argparse.ArgumentParser(prog="tessapi", description="Run Tesseract and dump its layout elements as JSON")
  sub = parser.add_subparsers(dest="cmd", required=True)

  p_pdf = sub.add_parser("pdf", help="Recognize a PDF file")
  p_pdf.add_argument("path", help="Path to PDF")
  p_pdf.add_argument("--dpi", type=int, default=300)
  p_pdf.add_argument("--first-page", type=int, default=None)
  p_pdf.add_argument("--last-page", type=int, default=None)
  _add_common_args(p_pdf)
  p_pdf.set_defaults(func=cmd_pdf)

  p_img = sub.add_parser("image", help="Recognize a single image or a directory of images (.png)")
  p_img.add_argument("path", help="Path to image file or directory of images")
  _add_common_args(p_img)
  p_img.set_defaults(func=cmd_image)

  args = parser.parse_args(argv)
  if args.verbose:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
  try:
    return args.func(args)
  except Exception as e:
    sys.stderr.write(f"Error: {e}\n")
    sys.stderr.write("Hint: install tesseract and its language data, and pip install .[pdf] for PDFs\n")
    return 2


if __name__ == "__main__":  # pragma: no cover
  raise SystemExit(main())
