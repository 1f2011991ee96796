"""
Recommendation content encoding.

A recommendation's title and description are persisted together in one
``content`` column::

    content = "<title>\\n<description>"      (trimmed)

Reading splits on the first newline: the first line is the title (or the
whole content when there is no newline), the remaining lines joined with
"\\n" are the description.  Titles therefore must not contain a newline.
"""


def compose_content(title: str, description: str | None) -> str:
    """Join title and description into the stored content value."""
    return f"{title}\n{description or ''}".strip()


def split_content(content: str | None) -> tuple[str, str]:
    """Split stored content back into ``(title, description)``."""
    if not content:
        return "", ""
    lines = content.split("\n")
    title = lines[0] or content
    description = "\n".join(lines[1:])
    return title, description
