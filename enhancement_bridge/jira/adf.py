"""
Atlassian Document Format (ADF) helpers.

JIRA Cloud returns rich-text fields as a tree of typed nodes. Two views are
derived from it:

- ``extract_content``: flattened plain text (used for comparisons and
  fallbacks), with table cell text collected separately.
- ``format_adf_content``: a markdown-like rendering (used for prompt
  injection) that keeps headings, list prefixes and pipe tables.
"""

from dataclasses import dataclass, field
from typing import Any

from enhancement_bridge.core.constants import NO_CONTENT

Table = list[list[str]]


@dataclass
class ExtractedContent:
    """Plain text and tables pulled out of an ADF node list."""

    text: str = ""
    tables: list[Table] = field(default_factory=list)


def _children(node: dict[str, Any]) -> list[dict[str, Any]]:
    content = node.get("content")
    return content if isinstance(content, list) else []


def extract_content(nodes: Any) -> ExtractedContent:
    """
    Recursively extract plain text and tables from ADF content.

    Args:
        nodes: The ``content`` array of an ADF document or node

    Returns:
        ExtractedContent with whitespace-joined text and any tables found
    """
    if not isinstance(nodes, list):
        return ExtractedContent(text=NO_CONTENT)

    parts: list[str] = []
    tables: list[Table] = []

    for node in nodes:
        if not isinstance(node, dict):
            continue
        node_type = node.get("type")

        if node_type == "text":
            if node.get("text"):
                parts.append(node["text"])
        elif node_type == "table":
            tables.append(_extract_table(node))
        elif "content" in node:
            # paragraph, heading, lists and unknown containers
            inner = extract_content(_children(node))
            if inner.text:
                parts.append(inner.text)
            tables.extend(inner.tables)

    return ExtractedContent(text=" ".join(parts).strip(), tables=tables)


def _extract_table(node: dict[str, Any]) -> Table:
    return [
        [extract_content(_children(cell)).text.strip() for cell in _children(row)]
        for row in _children(node)
    ]


def format_adf_content(nodes: Any, indent: int = 0) -> str:
    """
    Recursively format ADF content as a markdown-like string.

    Args:
        nodes: The ``content`` array of an ADF document or node
        indent: Current indentation (spaces); grows by two per list level

    Returns:
        Formatted, trimmed string ("" for non-list input)
    """
    if not isinstance(nodes, list):
        return ""

    pad = " " * indent
    result = ""

    for node in nodes:
        if not isinstance(node, dict):
            continue
        node_type = node.get("type")

        if node_type == "paragraph":
            result += pad + format_adf_content(node.get("content"), indent) + "\n\n"
        elif node_type == "text":
            result += node.get("text", "")
        elif node_type == "heading":
            level = (node.get("attrs") or {}).get("level") or 1
            result += "\n" + "#" * level + " " + format_adf_content(node.get("content"), indent) + "\n\n"
        elif node_type == "bulletList":
            for item in _children(node):
                result += pad + "- " + format_adf_content(item.get("content"), indent + 2) + "\n"
            result += "\n"
        elif node_type == "orderedList":
            for counter, item in enumerate(_children(node), start=1):
                result += pad + f"{counter}. " + format_adf_content(item.get("content"), indent + 2) + "\n"
            result += "\n"
        elif node_type == "listItem":
            result += format_adf_content(node.get("content"), indent)
        elif node_type == "table":
            result += _format_table(node, indent)
        elif "content" in node:
            result += format_adf_content(node.get("content"), indent)

    return result.strip()


def _format_table(node: dict[str, Any], indent: int) -> str:
    rows = [
        [format_adf_content(cell.get("content"), indent).strip() for cell in _children(row)]
        for row in _children(node)
    ]
    if not rows:
        return ""

    pad = " " * indent
    header, body = rows[0], rows[1:]
    lines = [
        pad + "| " + " | ".join(header) + " |",
        pad + "| " + " | ".join("---" for _ in header) + " |",
    ]
    lines.extend(pad + "| " + " | ".join(row) + " |" for row in body)
    return "\n" + "\n".join(lines) + "\n\n"


def plain_text_doc(text: str) -> dict[str, Any]:
    """Wrap plain text in a single-paragraph ADF document."""
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": text}],
            }
        ],
    }


def field_text(value: Any, formatted: bool = False, default: str = "") -> str:
    """
    Read a JIRA field that may be plain text or an ADF document.

    Args:
        value: Raw field value from the issue payload
        formatted: Use the markdown-like formatter instead of plain text
        default: Returned when the field is empty

    Returns:
        Text content of the field, or ``default``
    """
    if isinstance(value, str):
        return value.strip() or default
    if isinstance(value, dict) and isinstance(value.get("content"), list):
        if formatted:
            text = format_adf_content(value["content"])
        else:
            text = extract_content(value["content"]).text
        return text or default
    return default
