"""Drop invalid encoding units from text before it is stored or embedded."""

from __future__ import annotations


def sanitize(data: str | bytes) -> str:
    """Return *data* as text containing only valid UTF-8 encodable characters.

    Bytes are decoded as UTF-8 with invalid sequences dropped (not replaced).
    For ``str`` input, lone surrogates (e.g. from ``surrogateescape`` decoding)
    are dropped. Surrounding valid text stays contiguous. Never raises.
    """
    if not data:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="ignore")
    return data.encode("utf-8", errors="ignore").decode("utf-8")
