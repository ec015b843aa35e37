"""
Content-Disposition for downloads. Starlette headers are latin-1 only, so the
plain filename carries an ASCII fallback and filename* the UTF-8 name (RFC 5987).
"""
import re
from urllib.parse import quote

_NON_ASCII = re.compile(r"[^\x20-\x7e]|[\"\\]")


def build_content_disposition(filename: str) -> str:
    """
    attachment; filename="<ascii>"; filename*=UTF-8''<encoded>

    Example:
        build_content_disposition("invoice_preview_J-1001.xlsx")
    """
    ascii_name = _NON_ASCII.sub("_", filename) or "download"
    encoded = quote(filename, safe="")
    return f'attachment; filename="{ascii_name}"; filename*=UTF-8\'\'{encoded}'
