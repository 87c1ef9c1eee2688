# Utility modules for the menu cost app
from .sanitizer import sanitize_text, sanitize_name, sanitize_unit
