"""
Text layout for certificates.

Element positions are percentages of the template size, so one layout works
for any template image. Font sizes and letter spacing are pixels on the
reference template (CERTIFICATE_TEMPLATE_SIZE) and are scaled to the real
image when rendering.
"""
import copy
from datetime import date

from django.conf import settings

ELEMENTS = ('name', 'date', 'certificate_id')

DEFAULT_STYLES = {
    'name': {
        'top': 41.5,
        'left': 50,
        'fontSize': 50,
        'color': '#F89A28',
        'fontWeight': 400,
        'letterSpacing': 3,
        'textAlign': 'center',
    },
    'date': {
        'top': 82.5,
        'left': 7.5,
        'fontSize': 23,
        'color': '#000000',
        'fontWeight': 500,
        'letterSpacing': 0,
        'textAlign': 'left',
    },
    'certificate_id': {
        'top': 85.5,
        'left': 7.5,
        'fontSize': 18,
        'color': '#000000',
        'fontWeight': 500,
        'letterSpacing': 0,
        'textAlign': 'left',
    },
}


def default_style(element):
    return copy.deepcopy(DEFAULT_STYLES[element])


def reference_size():
    return tuple(getattr(settings, 'CERTIFICATE_TEMPLATE_SIZE', (1588, 2246)))


def clamp_percent(value):
    return max(0.0, min(100.0, float(value)))


def preview_scale(container_width):
    """Scale at which the reference template fits a preview container."""
    width, _ = reference_size()
    return container_width / width


def apply_drag(style, dx, dy, scale):
    """
    Moves an element by a pointer delta measured on a preview drawn at `scale`.
    Returns a new style with `top`/`left` clamped to 0-100.
    """
    width, height = reference_size()
    moved = dict(style)
    moved['left'] = clamp_percent(style['left'] + (dx / scale) / width * 100)
    moved['top'] = clamp_percent(style['top'] + (dy / scale) / height * 100)
    return moved


def to_pixels(style, image_size):
    """Anchor point (x, y) of an element on an image of `image_size`."""
    width, height = image_size
    return style['left'] / 100 * width, style['top'] / 100 * height


def ordinal_suffix(day):
    if day in (1, 21, 31):
        return 'st'
    if day in (2, 22):
        return 'nd'
    if day in (3, 23):
        return 'rd'
    return 'th'


def format_issue_date(value):
    """date(2025, 12, 22) -> '22nd December, 2025'"""
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return f"{value.day}{ordinal_suffix(value.day)} {value.strftime('%B')}, {value.year}"


def format_name(full_name):
    # Capitalise each word the way the template shows names
    return ' '.join(word[:1].upper() + word[1:] for word in full_name.split())
