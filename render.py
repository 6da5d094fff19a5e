import json
import os
import sys
import warnings
from dataclasses import dataclass, replace
from pathlib import Path

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

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

from fractal_engine import (
    ColorScheme,
    FractalError,
    FractalKind,
    FractalParameters,
    FractalRenderer,
    parameters_from_mapping,
    view_bounds,
)
from fractal_engine.export import to_data_url, write_gif, write_image

from argparse import ArgumentParser

TOUR_KINDS = (FractalKind.MANDELBROT, FractalKind.JULIA, FractalKind.SIERPINSKI)
VALID_MODES = ("image", "gif", "data-url")


def detect_device():
    """Pick the first GPU TensorFlow can see, falling back to the CPU."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    image_path: Path | None
    gif_path: Path | None
    image_format: str


def build_parser():
    parser = ArgumentParser(description='Render Mandelbrot, Julia and Sierpinski fractals.')

    parser.add_argument('--kind', type=str, dest='kind', metavar='KIND',
                        help='fractal to render. Choices: %s.' % ', '.join(k.value for k in FractalKind))

    parser.add_argument('--width', type=int, dest='width', metavar='WIDTH',
                        help='raster width in pixels (default 512)')

    parser.add_argument('--height', type=int, dest='height', metavar='HEIGHT',
                        help='raster height in pixels (default 512)')

    parser.add_argument('--max-iterations', type=int, dest='max_iterations', metavar='MAX_ITERATIONS',
                        help='iteration cap per pixel; the chaos game plots 100 points per iteration (default 100)')

    parser.add_argument('--zoom', type=float, dest='zoom', metavar='ZOOM',
                        help='magnification; 1 spans roughly [-2, 2] on each axis (default 1.0)')

    parser.add_argument('--center-x', type=float, dest='center_x', metavar='CENTER_X',
                        help='real coordinate of the view centre (default 0)')

    parser.add_argument('--center-y', type=float, dest='center_y', metavar='CENTER_Y',
                        help='imaginary coordinate of the view centre (default 0)')

    parser.add_argument('--color-scheme', type=str, dest='color_scheme', metavar='SCHEME',
                        help='palette. Choices: %s.' % ', '.join(s.value for s in ColorScheme))

    parser.add_argument('--escape-radius', type=float, dest='escape_radius', metavar='RADIUS',
                        help='orbit magnitude treated as escaped (default 2.0)')

    parser.add_argument('--julia-real', type=float, dest='julia_real', metavar='REAL',
                        help='real part of the Julia constant (default -0.7)')

    parser.add_argument('--julia-imag', type=float, dest='julia_imag', metavar='IMAG',
                        help='imaginary part of the Julia constant (default 0.27015)')

    parser.add_argument('--seed', type=int, default=None,
                        help='seed for the chaos-game random source; omit for a fresh pattern each run')

    parser.add_argument('--config', type=str, default=None,
                        help='JSON file of render parameters. Command-line flags override its values.')

    parser.add_argument('--tour', action='store_true',
                        help='render the mandelbrot, julia and sierpinski fractals in turn with the same settings')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Outputs to generate. May be repeated. Choices: %s.' % ', '.join(VALID_MODES))

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination for single-file outputs (image/gif) or container directory when both are requested.')

    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT', default='png',
                        help='file format for image outputs. Can be any extension supported by Pillow. Default: "png".')

    parser.add_argument('--gif-duration', type=float, dest='gif_duration', default=2.0,
                        help='seconds each render is shown in a GIF (default 2.0)')

    parser.add_argument('--device', type=str, default=None,
                        help='TensorFlow device for escape-time renders, e.g. "/CPU:0". Detected when omitted.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    modes: list[str] = []
    for mode in opt.modes or ["image"]:
        if mode not in VALID_MODES:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(VALID_MODES)}.")
        if mode not in modes:
            modes.append(mode)

    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"

    file_modes = [mode for mode in modes if mode in {"image", "gif"}]
    output_arg = getattr(opt, "output", None)
    image_path: Path | None = None
    gif_path: Path | None = None

    if not file_modes:
        if output_arg:
            parser.error("--output is only valid when image or gif modes are requested.")
    elif len(file_modes) == 1:
        mode = file_modes[0]
        if output_arg:
            output_path = Path(output_arg).expanduser()
            if output_arg.endswith(("/", os.sep)) or (output_path.exists() and output_path.is_dir()):
                parser.error("--output must be a file path when a single file-based mode is selected.")
            if mode == "gif":
                if output_path.suffix:
                    if output_path.suffix.lower() != ".gif":
                        parser.error("GIF outputs must end with .gif.")
                else:
                    output_path = output_path.with_suffix(".gif")
                gif_path = output_path.resolve()
            else:
                expected_suffix = f".{image_format}"
                if output_path.suffix:
                    if output_path.suffix.lower() != expected_suffix:
                        parser.error(f"--output extension {output_path.suffix} does not match --format {image_format}.")
                else:
                    output_path = output_path.with_suffix(expected_suffix)
                image_path = output_path.resolve()
        elif mode == "gif":
            gif_path = Path("fractal.gif").resolve()
        else:
            image_path = Path(f"fractal.{image_format}").resolve()
    else:
        base_dir = Path(output_arg).expanduser() if output_arg else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("--output must be a directory when both image and gif modes are active.")
        gif_path = (base_dir / "fractal.gif").resolve()
        image_path = (base_dir / f"fractal.{image_format}").resolve()

    return OutputConfig(
        modes=tuple(modes),
        image_path=image_path,
        gif_path=gif_path,
        image_format=image_format,
    )


def resolve_parameters(opt) -> FractalParameters:
    """Merge defaults, the optional JSON config and explicit flags, in that order."""

    params = FractalParameters()
    if opt.config:
        with open(opt.config, encoding="utf-8") as handle:
            params = parameters_from_mapping(json.load(handle), base=params)

    overrides = {}
    for name in ("kind", "width", "height", "max_iterations", "zoom", "center_x",
                 "center_y", "color_scheme", "escape_radius"):
        value = getattr(opt, name, None)
        if value is not None:
            overrides[name] = value

    if opt.julia_real is not None or opt.julia_imag is not None:
        current = params.resolved_julia_c()
        overrides["julia_c"] = {
            "real": opt.julia_real if opt.julia_real is not None else current.real,
            "imag": opt.julia_imag if opt.julia_imag is not None else current.imag,
        }

    return parameters_from_mapping(overrides, base=params)


def _tour_path(path: Path, kind: FractalKind) -> Path:
    return path.with_name(f"{path.stem}-{kind.value}{path.suffix}")


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    output_config = resolve_output_config(opt, parser)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    log("TensorFlow version: %s" % tf.__version__)
    device = opt.device or detect_device()

    try:
        params = resolve_parameters(opt)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Could not read config '{opt.config}': {exc}", file=sys.stderr)
        return 1
    except FractalError as exc:
        print(f"Fractal rendering failed: {exc}", file=sys.stderr)
        return 1

    jobs = [replace(params, kind=kind) for kind in TOUR_KINDS] if opt.tour else [params]
    renderer = FractalRenderer(device=device)
    results = []

    for job in jobs:
        print(f"Rendering {job.kind.value} fractal...", end='\r')
        x_min, x_max, y_min, y_max = view_bounds(job)
        log(f"View X: [{x_min:.6g}, {x_max:.6g}] Y: [{y_min:.6g}, {y_max:.6g}]")
        try:
            result = renderer.render(job, seed=opt.seed)
        except FractalError as exc:
            print(f"Fractal rendering failed: {exc}", file=sys.stderr)
            return 1
        print(f"{job.kind.value} fractal rendered in {result.elapsed_ms:.2f}ms")
        if result.iterations is not None:
            inside = int((result.iterations == job.max_iterations).sum())
            log(f"{inside} of {job.width * job.height} pixels did not escape")
        if result.density is not None:
            log(f"{int(result.density.sum())} chaos-game points plotted")
        results.append(result)

    if output_config.image_path is not None:
        for result in results:
            path = output_config.image_path
            if len(results) > 1:
                path = _tour_path(path, result.parameters_used.kind)
            write_image(result, path, output_config.image_format)
            log(f"Wrote {path}")

    if output_config.gif_path is not None:
        write_gif(results, output_config.gif_path, duration=opt.gif_duration)
        log(f"Wrote {output_config.gif_path}")

    if "data-url" in output_config.modes:
        for result in results:
            print(to_data_url(result))

    return 0


if __name__ == '__main__':
    sys.exit(main())
