from .response_parser import (
    coerce_number,
    coerce_text,
    extract_numbers,
    flatten_text,
    parse_response,
    strip_code_fences,
)

__all__ = [
    "coerce_number",
    "coerce_text",
    "extract_numbers",
    "flatten_text",
    "parse_response",
    "strip_code_fences",
]
