import io
import logging
import os

from django.conf import settings
from PIL import Image, ImageDraw, ImageFont

from .layout import format_issue_date, format_name, reference_size, to_pixels

logger = logging.getLogger(__name__)

REGULAR_FONT = "DejaVuSans.ttf"
BOLD_FONT = "DejaVuSans-Bold.ttf"


def load_font(size, weight=400):
    font_dir = getattr(settings, 'CERTIFICATE_FONT_DIR', '')
    filename = BOLD_FONT if weight >= 600 else REGULAR_FONT
    try:
        return ImageFont.truetype(os.path.join(font_dir, filename), size)
    except OSError:
        logger.debug("Font %s not found in %s, using Pillow's default font", filename, font_dir)
        return ImageFont.load_default(size=size)


def open_template(template=None):
    """The course template as an RGB image, or a blank reference-size canvas."""
    if template:
        with template.open('rb') as fh:
            with Image.open(fh) as base_img:
                return base_img.convert("RGB")
    return Image.new("RGB", reference_size(), "white")


def text_width(draw, text, font, letter_spacing):
    if not letter_spacing:
        return draw.textlength(text, font=font)
    return sum(draw.textlength(ch, font=font) for ch in text) + letter_spacing * (len(text) - 1)


def draw_element(image, draw, text, style):
    """Draws one text element; `style` is a layout style dict."""
    scale = image.width / reference_size()[0]
    font_size = max(1, round(style['fontSize'] * scale))
    letter_spacing = style.get('letterSpacing', 0) * scale
    font = load_font(font_size, style.get('fontWeight', 400))

    x, y = to_pixels(style, image.size)
    width = text_width(draw, text, font, letter_spacing)

    # Centred text spans the whole template and ignores `left`. Left and right
    # alignment both sit in a box sized to the text, starting at `left`.
    if style.get('textAlign', 'left') == 'center':
        x = (image.width - width) / 2

    color = style.get('color', '#000000')
    if not letter_spacing:
        draw.text((x, y), text, fill=color, font=font)
        return

    for ch in text:
        draw.text((x, y), ch, fill=color, font=font)
        x += draw.textlength(ch, font=font) + letter_spacing


def render_certificate(full_name, issue_date, certificate_id, layout, template=None):
    """
    Overlays the student name, issue date and (optionally) certificate ID
    on the template and returns the PIL image.
    """
    image = open_template(template)
    draw = ImageDraw.Draw(image)

    draw_element(image, draw, format_name(full_name), layout.name_style)
    draw_element(image, draw, format_issue_date(issue_date), layout.date_style)
    if layout.show_certificate_id:
        draw_element(image, draw, certificate_id, layout.certificate_id_style)

    return image


def render_png(full_name, issue_date, certificate_id, layout, template=None):
    image = render_certificate(full_name, issue_date, certificate_id, layout, template)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()
