"""Template variable substitution — {{name}} tokens against a content dict.

Unresolved tokens (key absent, None, or empty) never fail a render: they
are replaced with a visible "[name]" placeholder, logged as a warning,
and reported as a WARNING Issue when the caller passes an issue list.

Alias resolution is opt-in. Upstream content generators are loose about
key names (a template says {{body}}, the generator emits "content"), so
with aliases enabled an unresolved name tries its alias keys in order,
then a case-insensitive key match.
"""

import re

from loguru import logger

from .errors import Issue


VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")

DEFAULT_ALIASES: dict[str, list[str]] = {
    "body": ["content", "body", "script"],
    "content": ["content", "body", "script"],
    "script": ["script", "content", "body"],
    "cta": ["callToAction", "cta", "caption"],
    "calltoaction": ["callToAction", "cta"],
    "hook": ["hook", "title", "question"],
    "title": ["title", "hook"],
    "answer": ["answer", "content", "body"],
    "question": ["question", "hook"],
    "items": ["items", "item1", "item2", "item3"],
}


def find_variables(text: str) -> list[str]:
    """Distinct variable names in order of first appearance."""
    seen = []
    for name in VARIABLE_PATTERN.findall(text or ""):
        if name not in seen:
            seen.append(name)
    return seen


def _has_value(value) -> bool:
    return value is not None and value != ""


def _lookup(name: str, content: dict, aliases: dict[str, list[str]] | None):
    value = content.get(name)
    if _has_value(value) or aliases is None:
        return value

    for key in aliases.get(name.lower(), []):
        if _has_value(content.get(key)):
            logger.debug(f"Mapped variable {{{{{name}}}}} to content key '{key}'")
            return content[key]

    lowered = name.lower()
    for key, candidate in content.items():
        if key.lower() == lowered and _has_value(candidate):
            logger.debug(f"Case-insensitive match {{{{{name}}}}} -> '{key}'")
            return candidate
    return value


def substitute(
    text: str,
    content: dict,
    issues: list[Issue] | None = None,
    aliases: dict[str, list[str]] | None = None,
) -> str:
    """Replace every {{name}} token in *text* with its content value.

    Args:
        text: Template string, e.g. "{{hook}} and {{cta}}".
        content: Variable name -> value.
        issues: Optional list; one WARNING Issue is appended per
            unresolved variable name.
        aliases: Optional alias table (see DEFAULT_ALIASES).

    Returns:
        The substituted text. Unresolved tokens become "[name]".
    """
    if not text:
        return ""

    resolved: dict[str, str] = {}
    for name in find_variables(text):
        value = _lookup(name, content, aliases)
        if _has_value(value):
            resolved[name] = str(value)
        else:
            logger.warning(
                f"Template variable {{{{{name}}}}} not found in content "
                f"(available: {sorted(content)})"
            )
            if issues is not None:
                issues.append(Issue.warning(
                    f"Missing template variable '{name}'",
                    variable=name,
                ))
            resolved[name] = f"[{name}]"

    return VARIABLE_PATTERN.sub(lambda m: resolved[m.group(1)], text)
