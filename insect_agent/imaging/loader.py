import os

import cv2
import numpy as np
import tifffile
from PIL import Image

SUPPORTED_EXTENSIONS = ('.tif', '.tiff', '.jpg', '.jpeg', '.png')


def validate_image_path(path):
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")
    ext = os.path.splitext(path)[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported format {ext} for file {path}")
    return path


def _tif_to_rgb(img):
    """Normalise a tifffile array to (H, W, 3) uint8."""
    if img.ndim == 3 and img.shape[0] < 10 and img.shape[2] >= 10:
        # (C, H, W) -> (H, W, C)
        img = np.transpose(img, (1, 2, 0))

    if img.dtype == np.uint16:
        img = (img / 256).astype(np.uint8)
    elif img.dtype in (np.float32, np.float64):
        img = (np.clip(img, 0.0, 1.0) * 255).astype(np.uint8)
    elif img.dtype != np.uint8:
        img = img.astype(np.uint8)

    if img.ndim == 2:
        img = np.stack([img] * 3, axis=-1)
    elif img.shape[2] >= 3:
        img = img[:, :, :3]  # drop alpha / extra bands
    else:
        img = np.repeat(img[:, :, :1], 3, axis=2)
    return img


def load_image(path):
    """Load an image file as an RGB PIL image (what the VLM accepts)."""
    validate_image_path(path)

    if path.lower().endswith(('.tif', '.tiff')):
        rgb = _tif_to_rgb(tifffile.imread(path))
    else:
        bgr = cv2.imread(path, cv2.IMREAD_COLOR)
        if bgr is None:
            raise ValueError(f"cv2.imread failed for {path}")
        rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)

    return Image.fromarray(rgb)


def to_pil(image):
    """Accepts a path, an RGB numpy array or a PIL image."""
    if isinstance(image, Image.Image):
        return image.convert('RGB') if image.mode != 'RGB' else image
    if isinstance(image, np.ndarray):
        return Image.fromarray(image)
    if isinstance(image, (str, os.PathLike)):
        return load_image(os.fspath(image))
    raise TypeError(f"Unsupported image type: {type(image).__name__}")
