import os
import sys
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf
import numpy as np

if _suppress_messages:
    try:
        tf.get_logger().setLevel("ERROR")
        for handler in tf.get_logger().handlers:
            handler.setLevel("ERROR")
    except Exception:
        pass

import PIL.Image
import imageio

from mandelzoom import (
    AnimationConfig,
    AnimationDriver,
    AnimationSummary,
    Frame,
    FrameRenderer,
    WorkerPool,
)
from mandelzoom.animation import DEFAULT_CENTER, DEFAULT_SECONDS_PER_DOUBLING

log("TensorFlow version: %s" % tf.__version__)

# Use the first visible GPU when TensorFlow can see one, otherwise fall back
# to the CPU so the renderer also works on machines without CUDA.
gpus = tf.config.list_physical_devices('GPU')
if gpus:
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
        DEVICE = '/GPU:0'
        log("GPU found, using %s" % gpus[0].name)
    except RuntimeError as e:
        if VERBOSE:
            print(e)
        DEVICE = '/CPU:0'
else:
    DEVICE = '/CPU:0'
    log("No GPU found, using CPU")

from argparse import ArgumentParser

FRAME_PREFIX = "frame_"
FRAME_DIGITS = 5
VIDEO_CODEC = "libx264"
VIDEO_PIXEL_FORMAT = "yuv420p"


def build_parser():
    parser = ArgumentParser(
        description='Render a histogram-equalized zoom into the Mandelbrot set and encode it as a video.',
    )

    parser.add_argument('width', type=int, nargs='?', default=1920,
                        help='frame width in pixels (default: 1920)')
    parser.add_argument('height', type=int, nargs='?', default=1080,
                        help='frame height in pixels (default: 1080)')
    parser.add_argument('fps', type=int, nargs='?', default=30,
                        help='frames per second of the output video (default: 30)')
    parser.add_argument('zoom_end', type=float, nargs='?', default=1e6,
                        help='zoom factor at which the animation stops (default: 1e6)')

    parser.add_argument('--x-center', type=float,
                        dest='x_center', help='real coordinate the zoom converges on',
                        metavar='X_CENTER', default=DEFAULT_CENTER[0])

    parser.add_argument('--y-center', type=float,
                        dest='y_center', help='imaginary coordinate the zoom converges on',
                        metavar='Y_CENTER', default=DEFAULT_CENTER[1])

    parser.add_argument('--seconds-per-doubling', type=float,
                        dest='seconds_per_doubling', help='seconds of video for the zoom factor to double',
                        metavar='SECONDS', default=DEFAULT_SECONDS_PER_DOUBLING)

    parser.add_argument('--frame-dir', dest='frame_dir', type=str, default='images',
                        help='Directory in which to store the numbered frames. Stale frames are removed first.')

    parser.add_argument('--output', dest='output', type=str, default='mandelbrot_zoom.mp4',
                        help='Destination of the encoded video.')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for the frames. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--workers', type=int, default=None,
                        help='Number of worker threads per frame. Defaults to the number of CPUs.')

    parser.add_argument('--skip-video', dest='skip_video', action='store_true',
                        help='Only write the frames, do not assemble them into a video.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def parse_cli(argv: Optional[Sequence[str]] = None):
    """Parse ``argv``; extra positional arguments print the usage and exit with status 1."""

    parser = build_parser()
    opt, extra = parser.parse_known_args(argv)
    if extra:
        parser.print_usage(sys.stderr)
        sys.exit(1)
    return parser, opt


def build_config(opt, parser: ArgumentParser) -> AnimationConfig:
    if opt.workers is not None and opt.workers <= 0:
        parser.error("--workers must be positive.")
    try:
        return AnimationConfig(
            width=opt.width,
            height=opt.height,
            fps=opt.fps,
            zoom_end=opt.zoom_end,
            seconds_per_doubling=opt.seconds_per_doubling,
            center=(opt.x_center, opt.y_center),
        )
    except ValueError as exc:
        parser.error(str(exc))


def resolve_image_format(opt, parser: ArgumentParser) -> str:
    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    if f".{image_format}" not in PIL.Image.registered_extensions():
        parser.error(f"Unknown frame format '{image_format}'; use an extension supported by Pillow.")
    return image_format


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def frame_filename(index: int, image_format: str, digits: int = FRAME_DIGITS, prefix: str = FRAME_PREFIX) -> str:
    return f"{prefix}{index:0{digits}d}.{image_format}"


def prepare_frame_dir(frame_dir: Path, image_format: str) -> bool:
    """Create ``frame_dir`` and delete frames left over from a previous run."""

    try:
        frame_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        print(f"Error while creating the folder {frame_dir}: {exc}")
        return False

    try:
        for stale in frame_dir.glob(f"{FRAME_PREFIX}*.{image_format}"):
            stale.unlink()
    except OSError as exc:
        print(f"Error while cleaning {frame_dir}: {exc}")
        return False
    return True


def write_frame_sequence(
    image: PIL.Image.Image,
    frame_dir: Path,
    index: int,
    digits: int,
    image_format: str,
    prefix: str,
) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    pil_format = _pil_format_name(image_format)
    frame_path = frame_dir / frame_filename(index, image_format, digits, prefix)
    frame_dir.mkdir(parents=True, exist_ok=True)
    image.save(str(frame_path), format=pil_format)
    return frame_path


@dataclass
class FrameWriter:
    """Frame sink writing each finished frame as a numbered image file."""

    frame_dir: Path
    image_format: str = "png"
    digits: int = FRAME_DIGITS
    prefix: str = FRAME_PREFIX
    paths: list[Path] = field(default_factory=list)

    def __call__(self, frame: Frame) -> None:
        image = PIL.Image.fromarray(frame.pixels)
        try:
            path = write_frame_sequence(
                image,
                self.frame_dir,
                frame.index,
                self.digits,
                self.image_format,
                self.prefix,
            )
        except (OSError, ValueError, KeyError) as exc:
            print(f"Error while writing frame {frame.index}: {exc}")
            return
        self.paths.append(path)


def encode_video(frame_paths: Sequence[Path], output: Path, fps: int) -> bool:
    """Assemble ``frame_paths`` in order into an H.264 video at ``fps``."""

    if not frame_paths:
        print("Error while creating the video: no frames were written")
        return False

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        writer = imageio.get_writer(
            str(output),
            fps=fps,
            codec=VIDEO_CODEC,
            pixelformat=VIDEO_PIXEL_FORMAT,
            macro_block_size=2,
        )
        try:
            for path in frame_paths:
                with PIL.Image.open(path) as image:
                    writer.append_data(np.asarray(image.convert("RGB")))
        finally:
            writer.close()
    except (OSError, RuntimeError, ValueError, ImportError) as exc:
        print(f"Error while creating the video: {exc}")
        return False
    return True


def report_progress(frame_index: int, zoom: float) -> None:
    print("Frame {0} | zoom = {1:g}".format(frame_index, zoom), end='\r', flush=True)


def print_summary(summary: AnimationSummary) -> None:
    print("\n====== FINAL STATS ======")
    print(f"Frames generated : {summary.frames}")
    print(f"Final zoom       : {summary.final_zoom:g}")
    print(f"Center X         : {summary.center[0]:.17g}")
    print(f"Center Y         : {summary.center[1]:.17g}")
    print(f"Total time       : {summary.elapsed:.3f} seconds")
    print(f"Time per frame   : {summary.seconds_per_frame:.3f} seconds")
    print("=========================\n")


def run(argv: Optional[Sequence[str]] = None) -> AnimationSummary:
    parser, opt = parse_cli(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    config = build_config(opt, parser)

    image_format = resolve_image_format(opt, parser)
    frame_dir = Path(opt.frame_dir).expanduser().resolve()
    output = Path(opt.output).expanduser().resolve()

    prepare_frame_dir(frame_dir, image_format)
    writer = FrameWriter(frame_dir, image_format=image_format)

    with WorkerPool(opt.workers) as pool:
        log("Rendering %dx%d at %d fps with %d workers on %s" % (config.width, config.height, config.fps, pool.size, DEVICE))
        log("Zoom scale per frame: %.12g" % config.scale_per_frame)
        renderer = FrameRenderer(config.width, config.height, pool, device=DEVICE)
        driver = AnimationDriver(config, renderer)
        summary = driver.run(writer, progress=report_progress)

    if not opt.skip_video:
        print("\nEncoding video...")
        if encode_video(writer.paths, output, config.fps):
            log("Video written to %s" % output)

    print_summary(summary)
    print("Done.")
    return summary


def main():
    run()


if __name__ == '__main__':
    main()
