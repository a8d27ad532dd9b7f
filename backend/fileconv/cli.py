"""Command-line entry point: fileconv [options] <input> <output>."""
import argparse
import sys
from typing import Optional

from fileconv.conversion.detector import FileTypeDetector
from fileconv.conversion.ffmpeg import installation_instructions
from fileconv.conversion.formats import ConversionCategory, FileType
from fileconv.conversion.models import AudioOptions, ConversionOptions, ImageOptions, VideoOptions
from fileconv.conversion.service import ConversionDispatcher, get_conversion_service

EXAMPLES = """\
examples:
  fileconv image.png image.jpg
  fileconv -i audio.wav -o audio.mp3 --bitrate 192
  fileconv video.avi video.mp4 -f mp4 --width 1280 --height 720
  fileconv --formats

Audio and video conversion needs FFmpeg on PATH, in FFMPEG_DIR, or at FFMPEG_PATH."""


class _ArgumentParser(argparse.ArgumentParser):
    """Exit with status 1 on bad arguments instead of argparse's 2."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="fileconv",
        description="Convert images, audio and video between formats.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("paths", nargs="*", metavar="PATH", help="input and output file (positional form)")
    parser.add_argument("-i", "--input", help="input file path")
    parser.add_argument("-o", "--output", help="output file path")
    parser.add_argument("-f", "--format", help="target format (default: detected from the output extension)")
    parser.add_argument("--formats", action="store_true", help="list supported formats and exit")

    encoding = parser.add_argument_group("encoding options")
    encoding.add_argument("--quality", type=int, help="JPEG/WEBP quality 1-100 (default 75)")
    encoding.add_argument("--bitrate", type=int, help="audio bitrate in kbps (default 128)")
    encoding.add_argument("--sample-rate", type=int, help="WAV sample rate in Hz (default 44100)")
    encoding.add_argument("--video-bitrate", type=int, help="video bitrate in kbps (default 1000)")
    encoding.add_argument("--audio-bitrate", type=int, help="audio bitrate of video outputs in kbps (default 128)")
    encoding.add_argument("--fps", type=int, help="output frame rate, 0 keeps the source rate (default 30)")
    encoding.add_argument("--width", type=int, help="output width; applied together with --height")
    encoding.add_argument("--height", type=int, help="output height; applied together with --width")
    return parser


def build_options(args: argparse.Namespace, category: Optional[ConversionCategory]) -> Optional[ConversionOptions]:
    """Typed options for the target category from the given flags; None when no flag applies. Raises ValueError."""
    if category == ConversionCategory.IMAGE:
        kw = {"quality": args.quality}
        cls = ImageOptions
    elif category == ConversionCategory.AUDIO:
        kw = {"bitrate": args.bitrate, "sample_rate": args.sample_rate}
        cls = AudioOptions
    elif category == ConversionCategory.VIDEO:
        kw = {
            "video_bitrate": args.video_bitrate,
            "audio_bitrate": args.audio_bitrate,
            "fps": args.fps,
            "width": args.width,
            "height": args.height,
        }
        cls = VideoOptions
    else:
        return None
    kw = {k: v for k, v in kw.items() if v is not None}
    return cls(**kw) if kw else None


def print_formats() -> None:
    print("Supported file formats:")
    for category in ConversionCategory:
        print()
        print(f"{category.value.capitalize()}:")
        for file_type in ConversionDispatcher.get_supported_formats(category):
            print(f"  - {file_type.value}")


def main(argv: Optional[list[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    args = parser.parse_args(argv)

    if args.formats:
        print_formats()
        return 0

    positional = list(args.paths)
    input_path = args.input or (positional.pop(0) if positional else None)
    output_path = args.output or (positional.pop(0) if positional else None)
    if not input_path or not output_path:
        print("Error: input and output paths are required.", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    detector = FileTypeDetector()
    target: Optional[FileType] = None
    if args.format:
        parsed = detector.parse_format(args.format)
        if parsed == FileType.UNKNOWN:
            print(f"Warning: unknown format '{args.format}', detecting it from the output file extension.")
        else:
            target = parsed

    resolved = target or detector.detect_file_type(output_path)
    category = detector.get_category(resolved) if resolved != FileType.UNKNOWN else None
    try:
        options = build_options(args, category)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Converting '{input_path}' to '{output_path}'...")
    service = get_conversion_service()
    result = service.convert_file(input_path, output_path, target, options)
    if result.success:
        print(f"OK: {result.message}")
        print(f"  Processing time: {result.processing_time:.2f} seconds")
        print(f"  Output file: {result.output_path}")
        return 0

    print(f"Conversion failed: {result.message}", file=sys.stderr)
    if result.error is not None:
        print(f"  Error details: {result.error}", file=sys.stderr)
    if category in (ConversionCategory.AUDIO, ConversionCategory.VIDEO) and not service.locator.is_available():
        print(installation_instructions(), file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
