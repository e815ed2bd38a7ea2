import os
import sys
import time
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

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


import numpy as np

# Imports for output
import PIL.Image
import imageio

from mandelbrot import (
    DEFAULT_VIEWPORT,
    RenderConfig,
    RenderEngine,
    Viewport,
    pan,
    zoom_at,
)

from argparse import ArgumentParser


def configure_tensorflow(requested_device):
    """Pick the TensorFlow device, preferring the first GPU when none is requested."""

    import tensorflow as tf

    if _suppress_messages:
        tf.get_logger().setLevel("ERROR")

    log("TensorFlow version: %s" % tf.__version__)
    if requested_device is not None:
        return requested_device

    gpus = tf.config.list_physical_devices('GPU')
    if gpus:
        try:
            for gpu in gpus:
                tf.config.experimental.set_memory_growth(gpu, True)
            log("GPU found, using %s" % gpus[0].name)
            return '/GPU:0'
        except RuntimeError as e:
            log(e)
            return '/CPU:0'
    log("No GPU found, using CPU")
    return '/CPU:0'


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    gif_path: Path | None
    image_path: Path | None
    frame_dir: Path | None
    image_format: str


def build_parser():
    parser = ArgumentParser(description='Render the Mandelbrot set with tile-parallel workers.')

    parser.add_argument('--width', type=int, dest='width', metavar='WIDTH', default=900,
                        help='raster width in pixels')
    parser.add_argument('--height', type=int, dest='height', metavar='HEIGHT', default=900,
                        help='raster height in pixels')

    parser.add_argument('--real-min', type=float, dest='real_min', default=DEFAULT_VIEWPORT.real_min,
                        help='left edge of the viewport on the real axis')
    parser.add_argument('--real-max', type=float, dest='real_max', default=DEFAULT_VIEWPORT.real_max,
                        help='right edge of the viewport on the real axis')
    parser.add_argument('--imag-min', type=float, dest='imag_min', default=DEFAULT_VIEWPORT.imag_min,
                        help='bottom edge of the viewport on the imaginary axis')
    parser.add_argument('--imag-max', type=float, dest='imag_max', default=DEFAULT_VIEWPORT.imag_max,
                        help='top edge of the viewport on the imaginary axis')

    parser.add_argument('--max-iterations', type=int, dest='max_iterations', metavar='MAX_ITERATIONS', default=100,
                        help='iteration cap; points that reach it are drawn as interior')
    parser.add_argument('--tile-edge', type=int, dest='tile_edge', metavar='TILE_EDGE', default=64,
                        help='edge length in pixels of the tiles handed to workers')
    parser.add_argument('--workers', type=int, dest='workers', metavar='WORKERS', default=None,
                        help='number of tile workers (default: one per CPU)')

    parser.add_argument('--brightness', type=float, default=1.2,
                        help='HSV value of the exterior palette; above 1.0 saturates channels')
    parser.add_argument('--saturation', type=float, default=0.5,
                        help='HSV saturation of the exterior palette')
    parser.add_argument('--colormap', type=str, dest='colormap', metavar='COLORMAP', default=None,
                        help='matplotlib colormap to use instead of the hue wheel (e.g. "viridis")')
    parser.add_argument('--inside-color', type=str, default='#000000',
                        help='Hex color for points inside the Mandelbrot set.')

    parser.add_argument('--backend', choices=['numpy', 'tensorflow'], default='numpy',
                        help='escape-time kernel used for each tile')
    parser.add_argument('--device', type=str, default=None,
                        help='TensorFlow device for the tensorflow backend (e.g. "/GPU:0")')

    parser.add_argument('--pan', type=float, nargs=2, metavar=('DX', 'DY'), default=None,
                        help='drag the view by a pixel delta before rendering')
    parser.add_argument('--zoom-x', type=float, dest='zoom_x', default=None,
                        help='pixel column the zoom is anchored at (default: raster center)')
    parser.add_argument('--zoom-y', type=float, dest='zoom_y', default=None,
                        help='pixel row the zoom is anchored at (default: raster center)')
    parser.add_argument('--wheel', type=int, choices=[-1, 0, 1], default=1,
                        help='wheel step applied between frames: 1 zooms in, -1 zooms out')
    parser.add_argument('--frames', type=int, dest='frames', metavar='FRAMES', default=1,
                        help='number of frames to generate')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: image, gif, frames.')
    parser.add_argument('--output', dest='output', type=str,
                        help='Destination for single-file outputs (gif/image) or container directory when both are requested.')
    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='Directory in which to store the frame sequence.')
    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT', default='png',
                        help='file format for image-based outputs. Can be any extension supported by Pillow. Default: "png".')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including timings and TensorFlow diagnostics.')

    return parser


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    valid_modes = {"image", "gif", "frames"}
    modes: list[str] = []
    for mode in opt.modes or ["image"]:
        if mode not in valid_modes:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(sorted(valid_modes))}.")
        if mode not in modes:
            modes.append(mode)

    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".") or "png"

    frame_dir: Path | None = None
    if "frames" in modes:
        frame_dir = Path(opt.frame_dir or "./frames").expanduser().resolve()
    elif opt.frame_dir is not None:
        parser.error("--frame-dir is only valid with the frames mode.")

    file_modes = [mode for mode in modes if mode in {"gif", "image"}]
    gif_path: Path | None = None
    image_path: Path | None = None

    if not file_modes:
        if opt.output:
            parser.error("--output is only valid when gif or image modes are requested.")
    elif len(file_modes) == 1:
        mode = file_modes[0]
        expected_suffix = ".gif" if mode == "gif" else f".{image_format}"
        output_path = Path(opt.output) if opt.output else Path("movie.gif" if mode == "gif" else f"mandelbrot{expected_suffix}")
        output_path = output_path.expanduser()
        if output_path.exists() and output_path.is_dir():
            parser.error("--output must point to a file, not a directory, when a single file mode is active.")
        if output_path.suffix:
            if output_path.suffix.lower() != expected_suffix:
                parser.error(f"--output extension {output_path.suffix} does not match {expected_suffix}.")
        else:
            output_path = output_path.with_suffix(expected_suffix)
        if mode == "gif":
            gif_path = output_path.resolve()
        else:
            image_path = output_path.resolve()
    else:
        base_dir = Path(opt.output).expanduser() if opt.output else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("--output must be a directory when both gif and image modes are active.")
        gif_path = (base_dir / "movie.gif").resolve()
        image_path = (base_dir / f"mandelbrot.{image_format}").resolve()

    return OutputConfig(
        modes=tuple(modes),
        gif_path=gif_path,
        image_path=image_path,
        frame_dir=frame_dir,
        image_format=image_format,
    )


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=_pil_format_name(image_format))


def write_frame_sequence(image: PIL.Image.Image, frame_dir: Path, index: int, digits: int, image_format: str) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    frame_path = frame_dir / f"frame{index:0{digits}d}.{image_format}"
    frame_dir.mkdir(parents=True, exist_ok=True)
    image.save(str(frame_path), format=_pil_format_name(image_format))
    return frame_path


def write_gif(writer: Any, frame_array: np.ndarray) -> None:
    """Append ``frame_array`` to an active GIF writer."""

    writer.append_data(frame_array)


@dataclass
class OutputWriters:
    config: OutputConfig
    frame_digits: int

    def __post_init__(self) -> None:
        self._gif_writer = None
        if self.config.gif_path is not None:
            self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            self._gif_writer = imageio.get_writer(str(self.config.gif_path), mode='I', duration=0.1, loop=0)

    def write_frame(self, frame_index: int, frame_array: np.ndarray) -> None:
        if self._gif_writer is not None:
            write_gif(self._gif_writer, frame_array)
        if self.config.frame_dir is not None:
            write_frame_sequence(
                PIL.Image.fromarray(frame_array),
                self.config.frame_dir,
                frame_index,
                self.frame_digits,
                self.config.image_format,
            )

    def finalize(self, final_array: np.ndarray | None) -> None:
        if final_array is not None and self.config.image_path is not None:
            write_single_image(PIL.Image.fromarray(final_array), self.config.image_path, self.config.image_format)

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None


def _hex_rgb(hex_color):
    hex_color = hex_color.lstrip('#')
    if len(hex_color) != 6:
        raise ValueError('inside_color must be in the form #RRGGBB.')
    try:
        return tuple(int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError as exc:
        raise ValueError('inside_color must contain only hexadecimal digits.') from exc


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")
    if opt.frames < 1:
        parser.error("--frames must be at least 1.")

    output_config = resolve_output_config(opt, parser)

    try:
        viewport = Viewport(opt.real_min, opt.real_max, opt.imag_min, opt.imag_max)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        inside_rgb = _hex_rgb(opt.inside_color)
    except ValueError:
        print(f"Invalid inside_color '{opt.inside_color}', defaulting to black.")
        inside_rgb = (0, 0, 0)

    if opt.device is not None and opt.backend != 'tensorflow':
        parser.error("--device is only valid with --backend tensorflow.")

    device = configure_tensorflow(opt.device) if opt.backend == 'tensorflow' else None

    try:
        config = RenderConfig(
            max_iterations=opt.max_iterations,
            tile_edge=opt.tile_edge,
            workers=opt.workers,
            saturation=opt.saturation,
            brightness=opt.brightness,
            inside_color=inside_rgb,
            colormap=opt.colormap,
            backend=opt.backend,
            device=device,
        )
    except ValueError as exc:
        parser.error(str(exc))

    width, height = opt.width, opt.height
    if opt.pan is not None:
        viewport = pan(viewport, opt.pan[0], opt.pan[1], width, height)

    zoom_x = opt.zoom_x if opt.zoom_x is not None else width / 2.0
    zoom_y = opt.zoom_y if opt.zoom_y is not None else height / 2.0

    frame_digits = max(3, len(str(max(opt.frames - 1, 0))))
    writers = OutputWriters(output_config, frame_digits=frame_digits)
    final_array = None

    try:
        with RenderEngine(config) as engine:
            log("Rendering %dx%d with %d workers, tile edge %d, backend %s"
                % (width, height, engine.workers, config.tile_edge, config.backend))
            for i in range(opt.frames):
                print("frame {0} out of {1}".format(i, opt.frames), end='\r')
                started = time.perf_counter()
                buffer = engine.render(viewport, width, height)
                log("frame %d: [%.6g, %.6g] x [%.6g, %.6g] in %.3fs"
                    % (i, viewport.real_min, viewport.real_max, viewport.imag_min, viewport.imag_max,
                       time.perf_counter() - started))

                final_array = np.asarray(buffer.rgb)
                writers.write_frame(i, final_array)
                viewport = zoom_at(viewport, zoom_x, zoom_y, width, height, opt.wheel)
    finally:
        writers.close()

    writers.finalize(final_array)


if __name__ == '__main__':
    main()
