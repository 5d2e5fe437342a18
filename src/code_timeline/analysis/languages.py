"""Language identifiers and their surface-token tables."""

from __future__ import annotations

from enum import Enum


class Language(Enum):
    """Programming language of a snapshot. Unknown names map to OTHER."""

    SWIFT = "swift"
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    GO = "go"
    RUST = "rust"
    KOTLIN = "kotlin"
    OTHER = "other"

    @classmethod
    def parse(cls, name: str | Language | None) -> Language:
        if isinstance(name, Language):
            return name
        if not name:
            return cls.OTHER
        key = name.strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return cls.OTHER


_ALIASES = {
    "py": "python",
    "js": "javascript",
    "ts": "typescript",
    "golang": "go",
    "rs": "rust",
    "kt": "kotlin",
}

# Tokens whose occurrences count as function declarations.
FUNCTION_TOKENS: dict[Language, tuple[str, ...]] = {
    Language.SWIFT: ("func ",),
    Language.PYTHON: ("def ",),
    Language.JAVASCRIPT: ("function ", " => "),
    Language.TYPESCRIPT: ("function ", " => "),
    Language.GO: ("func ",),
    Language.RUST: ("fn ",),
    Language.KOTLIN: ("fun ",),
    Language.OTHER: (),
}

CONDITIONAL_TOKENS: tuple[str, ...] = ("if ", "else", "switch", "case", "when")

LOOP_TOKENS: tuple[str, ...] = ("for ", "while ", "repeat", "forEach")

# File extensions, used by the CLI to infer a language from a path.
EXTENSIONS: dict[str, Language] = {
    ".swift": Language.SWIFT,
    ".py": Language.PYTHON,
    ".js": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".go": Language.GO,
    ".rs": Language.RUST,
    ".kt": Language.KOTLIN,
}


def language_for_suffix(suffix: str) -> Language:
    return EXTENSIONS.get(suffix.lower(), Language.OTHER)
