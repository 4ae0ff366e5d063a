"""
Reference Resolution for Linked Documents.

Turns a reference found inside a document (a link target) into a
store-relative document path, and decides which references the viewer
should navigate itself versus leave to default handling.
"""

import re
from typing import Iterable, List

# Suffixes that identify a navigable document in the collection.
DOCUMENT_SUFFIXES = (".md", ".markdown")

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")


def resolve_reference(current_path: str, reference: str) -> str:
    """
    Resolve a reference relative to the document that contains it.

    A leading ``/`` makes the reference store-absolute. Otherwise the
    reference is applied to the directory of ``current_path``; ``..``
    never climbs above the store root.

    Args:
        current_path: Store-relative path of the containing document.
        reference: Raw link target from the document.

    Returns:
        Store-relative path with ``/`` separators.
    """
    if reference.startswith("/"):
        return reference[1:]

    if "/" in current_path:
        segments: List[str] = current_path[:current_path.rindex("/")].split("/")
    else:
        segments = []

    for part in reference.split("/"):
        if part == "..":
            if segments:
                segments.pop()
        elif part == "." or not part:
            continue
        else:
            segments.append(part)

    return "/".join(segments)


def strip_fragment(reference: str) -> str:
    """Drop any ``#anchor`` or ``?query`` suffix from a reference."""
    for marker in ("#", "?"):
        if marker in reference:
            reference = reference[:reference.index(marker)]
    return reference


def is_document_path(path: str, suffixes: Iterable[str] = DOCUMENT_SUFFIXES) -> bool:
    """True if ``path`` names a document by suffix, ignoring case."""
    lowered = path.lower()
    return any(lowered.endswith(suffix) for suffix in suffixes)


def is_resolvable_reference(
    reference: str,
    suffixes: Iterable[str] = DOCUMENT_SUFFIXES,
) -> bool:
    """
    Classify a link target as navigable within the collection.

    Absolute URLs, protocol-relative URLs and same-document anchors are
    never navigable. Everything else is navigable only when it names a
    document, optionally followed by an anchor or query.
    """
    if not reference:
        return False

    if reference.startswith("//") or _SCHEME_RE.match(reference):
        return False

    if reference.startswith("#"):
        return False

    suffixes = tuple(suffixes)
    if reference.startswith("/"):
        return is_document_path(reference, suffixes)

    return is_document_path(strip_fragment(reference), suffixes)


__all__ = [
    "DOCUMENT_SUFFIXES",
    "resolve_reference",
    "strip_fragment",
    "is_document_path",
    "is_resolvable_reference",
]
