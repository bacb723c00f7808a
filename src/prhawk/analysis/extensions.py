"""Decide which changed files can be scored for complexity."""

from __future__ import annotations

from pydantic import BaseModel

# JavaScript and TypeScript, each in a plain and a JSX flavour
SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({"js", "jsx", "ts", "tsx"})
TYPESCRIPT_EXTENSIONS: frozenset[str] = frozenset({"ts", "tsx"})
FLOW_EXTENSION = "flow"


class ExtensionInfo(BaseModel):
    """Classification of a single filename."""

    extension: str | None
    supported: bool
    is_typescript: bool = False
    is_flow: bool = False


def get_extension(filename: str) -> str | None:
    """Return the text after the last '.', or None if there is no dot."""
    if "." not in filename:
        return None
    return filename.rsplit(".", 1)[1]


def classify(filename: str) -> ExtensionInfo:
    """Classify a filename. Matching is exact and case-sensitive."""
    extension = get_extension(filename)
    return ExtensionInfo(
        extension=extension,
        supported=extension in SUPPORTED_EXTENSIONS,
        is_typescript=extension in TYPESCRIPT_EXTENSIONS,
        is_flow=extension == FLOW_EXTENSION,
    )


def is_supported(filename: str) -> bool:
    return classify(filename).supported
