"""Surface heuristics over raw source text.

Nothing here parses code. Every measure is a count of non-overlapping token
occurrences, so results are cheap, deterministic and language-agnostic. A
token inside a string literal or comment is counted like any other.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .languages import CONDITIONAL_TOKENS, FUNCTION_TOKENS, LOOP_TOKENS, Language

# Complexity weights per unit.
LINE_WEIGHT = 0.01
FUNCTION_WEIGHT = 0.1
CONDITIONAL_WEIGHT = 0.05
LOOP_WEIGHT = 0.08

CLASS_TOKENS = ("class ", "struct ", "interface ", "enum ", "trait ")
IMPORT_TOKENS = ("import ", "require(", "use ", "#include")
DECLARATION_TOKENS = ("var ", "let ", "const ", "val ", ":= ")


@dataclass(frozen=True)
class CodeProfile:
    """All heuristic counts for one piece of text."""

    language: Language
    lines: int
    non_blank_lines: int
    functions: int
    conditionals: int
    loops: int
    complexity: float


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _count(text: str, tokens: tuple[str, ...]) -> int:
    return sum(text.count(token) for token in tokens)


def line_count(text: str) -> int:
    """Number of newline-separated segments; the empty string counts as one."""
    return len(_normalize(text).split("\n"))


def non_blank_line_count(text: str) -> int:
    return sum(1 for line in _normalize(text).split("\n") if line.strip())


def function_count(text: str, language: Language) -> int:
    return _count(text, FUNCTION_TOKENS.get(language, ()))


def conditional_count(text: str) -> int:
    return _count(text, CONDITIONAL_TOKENS)


def loop_count(text: str) -> int:
    return _count(text, LOOP_TOKENS)


def complexity(text: str, language: Language) -> float:
    """Weighted surface complexity, saturating at 1.0.

    ``min(1, 0.01*nonBlankLines + 0.1*functions + 0.05*conditionals + 0.08*loops)``
    """
    return _score(
        non_blank_line_count(text),
        function_count(text, language),
        conditional_count(text),
        loop_count(text),
    )


def _score(non_blank: int, functions: int, conditionals: int, loops: int) -> float:
    score = (
        LINE_WEIGHT * non_blank
        + FUNCTION_WEIGHT * functions
        + CONDITIONAL_WEIGHT * conditionals
        + LOOP_WEIGHT * loops
    )
    return min(1.0, score)


def profile(text: str, language: Language) -> CodeProfile:
    non_blank = non_blank_line_count(text)
    functions = function_count(text, language)
    conditionals = conditional_count(text)
    loops = loop_count(text)
    return CodeProfile(
        language=language,
        lines=line_count(text),
        non_blank_lines=non_blank,
        functions=functions,
        conditionals=conditionals,
        loops=loops,
        complexity=_score(non_blank, functions, conditionals, loops),
    )


def line_delta(old: str, new: str) -> tuple[int, int]:
    """Return ``(added, removed)`` derived from the line-count difference."""
    delta = line_count(new) - line_count(old)
    return max(0, delta), max(0, -delta)


def code_features(text: str, language: Language) -> frozenset[str]:
    """Feature tags describing what kinds of constructs the text contains."""
    features = set()
    lines = line_count(text)
    if lines < 20:
        features.add("size:small")
    elif lines < 100:
        features.add("size:medium")
    else:
        features.add("size:large")

    if function_count(text, language) > 0:
        features.add("has_functions")
    if _count(text, CLASS_TOKENS) > 0:
        features.add("has_classes")
    if "@" in text:
        features.add("has_attributes")
    if _count(text, IMPORT_TOKENS) > 0:
        features.add("has_imports")
    if _count(text, DECLARATION_TOKENS) > 0:
        features.add("has_variable_declarations")
    return frozenset(features)


def partial_code_features(text: str) -> frozenset[str]:
    """Feature tags for an in-progress fragment the user is still typing."""
    stripped = text.strip()
    if not stripped:
        return frozenset({"partial:empty"})
    features = set()
    if len(stripped) < 20:
        features.add("partial:short")
    if stripped.count("{") > stripped.count("}") or stripped.endswith(":"):
        features.add("partial:incomplete_block")
    return frozenset(features)


_FUNCTION_NAME_RE = re.compile(r"\b(?:func|def|function|fn|fun)\s+([A-Za-z_][A-Za-z0-9_]*)")
_DECLARED_NAME_RE = re.compile(r"\b(?:var|let|const|val)\s+([A-Za-z_][A-Za-z0-9_]*)")
_ASSIGNED_NAME_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=[^=]", re.MULTILINE)


def function_names(text: str) -> list[str]:
    return _FUNCTION_NAME_RE.findall(text)


def variable_names(text: str, language: Language) -> list[str]:
    names = _DECLARED_NAME_RE.findall(text)
    if language is Language.PYTHON:
        names.extend(_ASSIGNED_NAME_RE.findall(text))
    return names


def naming_style(name: str) -> str:
    """Classify an identifier as snake_case, camelCase, PascalCase, UPPER_CASE or lowercase."""
    core = name.strip("_")
    if not core:
        return "lowercase"
    if core.isupper() and len(core) > 1:
        return "UPPER_CASE"
    if "_" in core:
        return "snake_case"
    if core[0].isupper():
        return "PascalCase"
    if any(ch.isupper() for ch in core):
        return "camelCase"
    return "lowercase"
