import re

_TAG_RE = re.compile(r"<[^>]*>")
_HSPACE_RE = re.compile(r"[ \t]+")


def sanitize_string(v):
    """Strip HTML tags, fold runs of spaces/tabs and trim. Line breaks survive for descriptions."""
    if not isinstance(v, str):
        return v
    v = _TAG_RE.sub("", v)
    v = _HSPACE_RE.sub(" ", v)
    return v.strip()
