"""Image loading and saving helpers."""
from __future__ import annotations

import os
from pathlib import Path

import cv2
import numpy as np
from PIL import Image, ImageGrab


def to_rgba(img: Image.Image) -> np.ndarray:
    """Return *img* as a contiguous RGBA ``uint8`` array."""
    return np.ascontiguousarray(np.array(img.convert("RGBA"), dtype=np.uint8))


def load_rgba(path: str | os.PathLike) -> np.ndarray:
    """Read an image file into an RGBA array."""
    with Image.open(path) as img:
        return to_rgba(img)


def grab_clipboard() -> np.ndarray:
    """Return the clipboard image as RGBA.

    Raises ``LookupError`` if the clipboard holds no image.
    """
    data = ImageGrab.grabclipboard()
    if isinstance(data, Image.Image):
        return to_rgba(data)
    # some platforms hand back a list of copied file names instead
    if isinstance(data, list):
        for name in data:
            if isinstance(name, str) and os.path.isfile(name):
                try:
                    return load_rgba(name)
                except OSError:
                    continue
    raise LookupError("clipboard does not contain an image")


def fit_width(img: np.ndarray, max_width: int) -> np.ndarray:
    """Downscale *img* so its width is at most ``max_width``.

    Aspect ratio is kept and the image is never enlarged.
    """
    h, w = img.shape[:2]
    if w <= max_width or w == 0 or h == 0:
        return img
    scale = max_width / w
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return cv2.resize(img, (new_w, new_h), interpolation=cv2.INTER_AREA)


def save_rgba(img: np.ndarray, path: str | os.PathLike) -> str:
    """Write an RGBA array to *path*, creating parent folders."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.ascontiguousarray(img)).save(out)
    return str(out)


def output_name(source: str | os.PathLike | None, label: str, ext: str = ".png") -> str:
    """File name for the *label* rendering of *source* (``<stem>-<label>.png``)."""
    stem = Path(source).stem if source else "clipboard"
    return f"{stem}-{label}{ext}"
