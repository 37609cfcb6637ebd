# ContentSync Image Derivatives
# Scaled, resized and blurred copies of downloaded images

from pathlib import Path

from PIL import Image, ImageFilter, ImageOps

from contentsync.config.schema import ImageTransform, ResizeFit, ResizeSpec

_RGB_ONLY_FORMATS = {"JPEG"}


def _scale(image: Image.Image, scale: float) -> Image.Image:
    width, height = image.size
    if not width or not height:
        raise ValueError("Image is missing width or height")
    return image.resize((max(round(width * scale), 1), max(round(height * scale), 1)), Image.Resampling.LANCZOS)


def _resize(image: Image.Image, spec: ResizeSpec) -> Image.Image:
    width, height = image.size

    # One side given: keep the aspect ratio
    if spec.width is None or spec.height is None:
        ratio = spec.width / width if spec.width is not None else spec.height / height
        return image.resize((max(round(width * ratio), 1), max(round(height * ratio), 1)), Image.Resampling.LANCZOS)

    size = (spec.width, spec.height)
    fit = spec.fit or ResizeFit.COVER
    if fit == ResizeFit.COVER:
        return ImageOps.fit(image, size, Image.Resampling.LANCZOS)
    if fit == ResizeFit.CONTAIN:
        return ImageOps.pad(image, size, Image.Resampling.LANCZOS)
    if fit == ResizeFit.FILL:
        return image.resize(size, Image.Resampling.LANCZOS)
    if fit == ResizeFit.INSIDE:
        return ImageOps.contain(image, size, Image.Resampling.LANCZOS)

    ratio = max(spec.width / width, spec.height / height)
    return image.resize((max(round(width * ratio), 1), max(round(height * ratio), 1)), Image.Resampling.LANCZOS)


def _blur(image: Image.Image, radius: float) -> Image.Image:
    return image.filter(ImageFilter.GaussianBlur(radius))


def render_derivative(source: Path, output: Path, transform: ImageTransform) -> Path:
    """
    Render one derivative of an image.

    Operations run in the order scale, resize, blur. The output keeps the
    source image format.

    Args:
        source: Image to read.
        output: Where to write the derivative.
        transform: Operations to apply.

    Returns:
        The output path.

    Raises:
        PIL.UnidentifiedImageError: If source is not an image.
        OSError: If reading or writing fails.
    """
    with Image.open(source) as original:
        image_format = original.format
        image = original.copy()

    if transform.scale is not None:
        image = _scale(image, transform.scale)
    if transform.resize is not None:
        image = _resize(image, transform.resize)
    if transform.blur is not None:
        image = _blur(image, transform.blur)

    if image_format in _RGB_ONLY_FORMATS and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    output.parent.mkdir(parents=True, exist_ok=True)
    image.save(output, format=image_format)
    return output
