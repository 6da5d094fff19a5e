"""Hand finished renders to image files, data URLs and GIF tours."""

from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import Iterable, Union

import imageio
import numpy as np
import PIL.Image

from .renderer import RenderResult

PathLike = Union[str, Path]


def _pil_format_name(ext: str) -> str:
    upper = ext.upper().lstrip(".")
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def to_image(result: RenderResult) -> PIL.Image.Image:
    """Copy the render buffer into an RGBA Pillow image."""

    return PIL.Image.fromarray(np.ascontiguousarray(result.buffer))


def write_image(result: RenderResult, output_path: PathLike, image_format: str = "png") -> Path:
    """Write a single render to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image = to_image(result)
    if pil_format == "JPEG":
        image = image.convert("RGB")
    image.save(str(output_path), format=pil_format)
    return output_path


def to_data_url(result: RenderResult) -> str:
    """Encode a render as a ``data:image/png;base64`` URL."""

    stream = io.BytesIO()
    to_image(result).save(stream, format="PNG")
    encoded = base64.b64encode(stream.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def write_gif(results: Iterable[RenderResult], output_path: PathLike, duration: float = 2.0) -> Path:
    """Write several renders as a looping GIF, each shown for ``duration`` seconds.

    Frames of different sizes are padded with black to the largest one.
    """

    frames = [np.asarray(result.buffer) for result in results]
    if not frames:
        raise ValueError("write_gif needs at least one render")

    height = max(frame.shape[0] for frame in frames)
    width = max(frame.shape[1] for frame in frames)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    # Current imageio releases take the per-frame duration in milliseconds.
    writer = imageio.get_writer(str(output_path), mode='I', duration=duration * 1000, loop=0)
    try:
        for frame in frames:
            canvas = np.zeros((height, width, 4), dtype=np.uint8)
            canvas[..., 3] = 255
            canvas[:frame.shape[0], :frame.shape[1]] = frame
            writer.append_data(canvas[..., :3])
    finally:
        writer.close()
    return output_path
