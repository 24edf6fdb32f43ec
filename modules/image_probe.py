"""Lightweight image probe used to confirm uploads are readable images."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Any

from PIL import Image, UnidentifiedImageError

from core.exceptions import ImageProcessingError


class ImageProbe:
    """Read image metadata once. Never modifies the file."""

    def inspect(self, image_path: str | Path) -> Dict[str, Any]:
        path = Path(image_path)
        try:
            with Image.open(path) as img:
                info: Dict[str, Any] = {
                    "format": img.format,
                    "width": img.width,
                    "height": img.height,
                    "mode": img.mode,
                }
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise ImageProcessingError(path.name, str(exc)) from exc

        return info
