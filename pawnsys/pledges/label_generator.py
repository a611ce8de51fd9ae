"""
Barcode labels for pledge items
Rendered locally with python-barcode (Code128) and Pillow
"""
import base64
import io
import logging
from typing import Optional

import barcode
from barcode.writer import ImageWriter
from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger('pawnsys.pledges')


def _load_fonts():
    try:
        return (
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf', 16),
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 12),
        )
    except (OSError, IOError):
        try:
            return ImageFont.truetype('arial.ttf', 16), ImageFont.truetype('arial.ttf', 12)
        except (OSError, IOError):
            return ImageFont.load_default(), ImageFont.load_default()


def _draw_centered(draw, text, y, font, width):
    bbox = draw.textbbox((0, 0), text, font=font)
    x = (width - (bbox[2] - bbox[0])) // 2
    draw.text((x, y), text, fill='black', font=font)


def generate_item_label(
    barcode_value: str,
    title: str,
    subtitle: Optional[str] = None,
    footer: Optional[str] = None,
    width: int = 400,
    height: int = 200,
) -> str:
    """
    Render a Code128 label and return it as a PNG data URL.

    Args:
        barcode_value: Value to encode (the item barcode)
        title: First line, e.g. pledge number and date
        subtitle: Second line, e.g. category, purity and weight
        footer: Last line, e.g. storage location
    """
    img = Image.new('RGB', (width, height), color='white')
    draw = ImageDraw.Draw(img)
    font_large, font_small = _load_fonts()
    margin = 10

    _draw_centered(draw, title[:40], 6, font_large, width)
    barcode_y = 28
    if subtitle:
        _draw_centered(draw, subtitle[:48], barcode_y, font_small, width)
        barcode_y += 16
    available_height = height - barcode_y - (44 if footer else 28)

    try:
        code128 = barcode.get_barcode_class('code128')
        barcode_img = code128(barcode_value, writer=ImageWriter()).render({
            'write_text': False,
            'module_width': 0.3,
            'module_height': 18.0,
            'quiet_zone': 2.0,
            'background': 'white',
            'foreground': 'black',
        })
        img_width, img_height = barcode_img.size
        barcode_width = width - 2 * margin
        scale = barcode_width / img_width
        scaled_height = int(img_height * scale)
        if scaled_height > available_height:
            scale = available_height / img_height
            scaled_height = available_height
            barcode_width = int(img_width * scale)
        barcode_img = barcode_img.resize((barcode_width, scaled_height), Image.Resampling.BILINEAR)
        img.paste(barcode_img, ((width - barcode_width) // 2, barcode_y))
        text_y = barcode_y + scaled_height + 4
    except Exception as e:
        logger.error(f"Barcode generation failed for '{barcode_value}': {str(e)}", exc_info=True)
        text_y = barcode_y

    _draw_centered(draw, barcode_value, text_y, font_small, width)
    if footer:
        _draw_centered(draw, footer[:48], text_y + 16, font_small, width)

    buffer = io.BytesIO()
    img.save(buffer, format='PNG', optimize=False, compress_level=1)
    encoded = base64.b64encode(buffer.getvalue()).decode('utf-8')
    buffer.close()
    img.close()
    return f'data:image/png;base64,{encoded}'


def label_for_item(item):
    """Label data URL for a PledgeItem"""
    pledge = item.pledge
    parts = [item.category.name if item.category_id else 'Item', item.purity.code, f"{item.net_weight}g"]
    return generate_item_label(
        barcode_value=item.barcode,
        title=f"{pledge.pledge_no}  {pledge.pledge_date:%d/%m/%Y}",
        subtitle=' | '.join(parts),
        footer=item.location_string,
    )
