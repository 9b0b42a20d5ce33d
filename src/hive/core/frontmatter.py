"""Frontmatter parsing for Markdown documents.

Documents carry a block of ``key: value`` lines between the first two
``---`` marker lines. These helpers work on text; callers handle file I/O
(through the atomic store) so edits can be applied to private copies.
"""

from ..errors import FrontmatterError

MARKER = "---"
CLOSING_MARKER_WINDOW = 20


def _marker_indices(lines: list[str]) -> list[int]:
    return [i for i, line in enumerate(lines) if line.rstrip() == MARKER][:2]


def extract_frontmatter(text: str) -> str:
    """Return the lines between the first two markers ("" if none)."""
    lines = text.splitlines()
    markers = _marker_indices(lines)
    if len(markers) < 2:
        return ""
    return "\n".join(lines[markers[0] + 1 : markers[1]])


def parse_fields(text: str) -> dict[str, str]:
    """Parse frontmatter into a key -> raw value mapping."""
    fields: dict[str, str] = {}
    for line in extract_frontmatter(text).splitlines():
        key, sep, value = line.partition(":")
        if sep and key and not key.startswith((" ", "#")):
            fields[key.strip()] = value.strip()
    return fields


def get_field(text: str, key: str) -> str | None:
    """Value of a frontmatter field, or None if absent."""
    return parse_fields(text).get(key)


def set_field(text: str, key: str, value: str) -> str:
    """Return text with a frontmatter field replaced or added.

    A missing field is inserted just before the closing marker. A document
    without frontmatter gets a new block holding only this field.
    """
    lines = text.splitlines()
    trailing_newline = text.endswith("\n") or not text
    markers = _marker_indices(lines)
    new_line = f"{key}: {value}"

    if len(markers) < 2:
        body = text if text.startswith("\n") or not text else "\n" + text
        return f"{MARKER}\n{new_line}\n{MARKER}\n{body}"

    start, end = markers
    for i in range(start + 1, end):
        if lines[i].split(":", 1)[0].strip() == key and ":" in lines[i]:
            lines[i] = new_line
            break
    else:
        lines.insert(end, new_line)

    result = "\n".join(lines)
    return result + "\n" if trailing_newline else result


def extract_content(text: str) -> str:
    """Return everything after the frontmatter block."""
    lines = text.splitlines(keepends=True)
    markers = _marker_indices([line.rstrip("\n") for line in lines])
    if len(markers) < 2:
        return text
    return "".join(lines[markers[1] + 1 :])


def validate_frontmatter(text: str) -> None:
    """Check the document opens with a marker and closes it early on.

    Raises:
        FrontmatterError: If the opening or closing marker is missing
    """
    lines = text.splitlines()
    if not lines or lines[0].rstrip() != MARKER:
        raise FrontmatterError(f"Frontmatter must start with {MARKER}")
    if MARKER not in (line.rstrip() for line in lines[1:CLOSING_MARKER_WINDOW]):
        raise FrontmatterError(f"Frontmatter must have closing {MARKER}")


def render(fields: dict[str, object], body: str = "") -> str:
    """Build document text from fields and a body."""
    header = "\n".join(f"{key}: {value}" for key, value in fields.items())
    return f"{MARKER}\n{header}\n{MARKER}\n\n{body}"
