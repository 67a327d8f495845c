import asyncio
import io

from PIL import Image, ImageOps

THUMBNAIL_BACKGROUND = (24, 5, 41)
PORTRAIT_BOX = (600, 825)
LANDSCAPE_BOX = (600, 350)
THUMBNAIL_CONTENT_TYPE = "image/jpeg"
JPEG_QUALITY = 85


def thumbnail_box(width: int, height: int) -> tuple[int, int]:
    """Portrait originals (taller than wide) get a taller preview box."""
    return PORTRAIT_BOX if height > width else LANDSCAPE_BOX


def _flatten(img: Image.Image) -> Image.Image:
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGBA", rgba.size, THUMBNAIL_BACKGROUND + (255,))
        return Image.alpha_composite(background, rgba).convert("RGB")
    return img.convert("RGB")


def render_thumbnail(abs_path: str, width: int, height: int, quality: int = JPEG_QUALITY) -> bytes:
    """Fit the original inside the preview box, padding with the background colour."""
    box = thumbnail_box(width, height)
    with Image.open(abs_path) as img:
        # JPEG only: decode at a reduced scale that still covers the box.
        img.draft("RGB", box)
        flat = _flatten(img)
    out = ImageOps.pad(flat, box, method=Image.Resampling.BICUBIC, color=THUMBNAIL_BACKGROUND)
    buf = io.BytesIO()
    out.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


async def render_thumbnail_async(abs_path: str, width: int, height: int) -> bytes:
    return await asyncio.to_thread(render_thumbnail, abs_path, width, height)
