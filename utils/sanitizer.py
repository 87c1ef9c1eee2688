"""
Input Sanitization Module

Cleans names and unit strings typed into invoices and recipes before they
are stored or matched.
"""

import html
import re


def sanitize_text(text, max_length=10000):
    """
    Sanitize text by HTML-escaping special characters.

    Args:
        text: The text to sanitize (can be None)
        max_length: Maximum allowed length (default 10000)

    Returns:
        Sanitized string, truncated if necessary
    """
    if text is None:
        return ''

    if not isinstance(text, str):
        text = str(text)

    text = text.strip()

    # Remove control characters and null bytes
    text = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', text)

    text = html.escape(text)

    if len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_name(name, max_length=200, default=''):
    """
    Sanitize an ingredient, component or menu item name.

    Collapses whitespace and falls back to default when nothing is left.
    """
    if not name:
        return default

    name = sanitize_text(name, max_length=max_length * 2)

    # Collapse multiple spaces
    name = re.sub(r'\s+', ' ', name)

    if len(name) > max_length:
        name = name[:max_length-3] + '...'

    return name or default


def sanitize_unit(unit, max_length=20):
    """Lowercase unit token without markup or control characters."""
    if not unit:
        return ''
    unit = re.sub(r'[^a-zA-Z .]', '', str(unit))
    return re.sub(r'\s+', ' ', unit).strip().lower()[:max_length]
