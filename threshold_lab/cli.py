import argparse
import logging
from dataclasses import replace
from pathlib import Path

from .config import ImageFormat, ThresholdConfig, ThresholdMethod, default_params
from .errors import DecodeError, ThresholdError
from .thresholding import apply_threshold, effective_threshold
from .utils import download_name, encode_image, load_image, save_image_any_path
from . import analysis


def _load(path: str):
    try:
        return load_image(path)
    except DecodeError as e:
        print(f"Failed to read: {path} ({e})")
        return None


def _suffix_format(path: Path):
    try:
        return ImageFormat.parse(path.suffix) if path.suffix else None
    except ThresholdError:
        return None


def cmd_threshold(args: argparse.Namespace) -> int:
    buffer = _load(args.input)
    if buffer is None:
        return 2
    params = replace(default_params, method=args.method, threshold=args.thresh)
    try:
        config = ThresholdConfig.from_params(params, preserve_border=not args.fill_border)
        result = apply_threshold(buffer, config, params)
    except ThresholdError as e:
        print(f"Failed to threshold: {e}")
        return 2

    fmt = args.format
    if args.output:
        outp = Path(args.output)
        suffix_fmt = _suffix_format(outp)
        if fmt and suffix_fmt and suffix_fmt is not ImageFormat.parse(fmt):
            print(f"Output suffix {outp.suffix} does not match --format {fmt}")
            return 2
        # infer the format from the file extension unless given
        fmt = fmt or outp.suffix.lstrip(".") or params.output_format
    else:
        fmt = fmt or params.output_format
        outdir = Path(args.output_dir)
        outdir.mkdir(parents=True, exist_ok=True)
        outp = outdir / download_name(fmt, params)

    try:
        encoded = encode_image(result, fmt, params)
    except ThresholdError as e:
        print(f"Failed to encode: {e}")
        return 3
    if not save_image_any_path(outp, encoded):
        print(f"Failed to save: {outp}")
        return 3
    cutoff = effective_threshold(buffer, config, params)
    print(f"Saved: {outp} (method={config.method.value}, cutoff={cutoff:.2f})")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    buffer = _load(args.input)
    if buffer is None:
        return 2
    stats = analysis.intensity_stats(buffer)
    thresh = ThresholdConfig.from_params(replace(default_params, threshold=args.thresh)).threshold
    print(f"size:       {buffer.width}x{buffer.height}x{buffer.channels}")
    print(f"mean:       {stats.mean:.2f}")
    print(f"otsu:       {stats.otsu:.2f}")
    print(f"white@{thresh:<4d} {stats.white_fraction(thresh) * 100:.1f}%")
    print(f"white@mean  {stats.white_fraction(stats.mean) * 100:.1f}%")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="threshold-lab", description="Black/white thresholding of images")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("threshold", help="Threshold an image and save it")
    sp.add_argument("--input", required=True, help="Input image path")
    out = sp.add_mutually_exclusive_group(required=True)
    out.add_argument("--output", help="Output image path")
    out.add_argument("--output-dir", help=f"Output directory (file named {default_params.download_stem}.<ext>)")
    sp.add_argument("--method", default=default_params.method,
                    choices=[m.value for m in ThresholdMethod], help="Thresholding method")
    sp.add_argument("--thresh", type=int, default=default_params.threshold,
                    help="Threshold 0-255 (out-of-range values are clamped)")
    sp.add_argument("--format", default=None,
                    choices=[f.value for f in ImageFormat] + ["jpeg"],
                    help=f"Output format (default: from --output suffix, else {default_params.output_format})")
    sp.add_argument("--fill-border", action="store_true",
                    help="Adaptive method: also threshold the one-pixel border")
    sp.set_defaults(func=cmd_threshold)

    sp = sub.add_parser("stats", help="Print intensity statistics")
    sp.add_argument("--input", required=True)
    sp.add_argument("--thresh", type=int, default=default_params.threshold)
    sp.set_defaults(func=cmd_stats)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
