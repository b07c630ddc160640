"""Design-system extraction from generated screen HTML.

Stitch screens are Tailwind pages whose major components are preceded by
marker comments such as ``<!-- TopAppBar -->``. The extraction pulls the
Tailwind config and those component blocks into a prompt that helps a
model reproduce the same visual language on a new screen.
"""

import re
from dataclasses import dataclass

TAILWIND_CONFIG_RE = re.compile(r"tailwind\.config\s*=\s*(\{.*?\})\s*</script>", re.DOTALL)


@dataclass(frozen=True)
class SectionPattern:
    """A marker-delimited component block."""

    label: str
    pattern: re.Pattern[str]


SECTION_PATTERNS = (
    SectionPattern(
        "Header/TopBar",
        re.compile(r"<!--\s*TopAppBar\s*-->(.*?)<!--", re.DOTALL),
    ),
    SectionPattern(
        "Bottom Navigation",
        re.compile(r"<!--\s*BottomNavigation\s*-->(.*?)<!--", re.DOTALL),
    ),
    SectionPattern(
        "Floating Action Button",
        re.compile(r"<!--\s*Floating Action Button\s*-->(.*?)</div>", re.DOTALL),
    ),
)

PROMPT_HEADER = "Based on the following design system:\n\n"
LAYOUT_FALLBACK = (
    "### UI Style\n"
    "(No explicit Header or Nav comments found. "
    "Refer to previous screen screenshot for layout.)\n"
)


def extract_tailwind_config(html: str) -> str | None:
    """Return the Tailwind config object with whitespace collapsed."""
    match = TAILWIND_CONFIG_RE.search(html)
    if not match:
        return None
    return re.sub(r"\s+", " ", match.group(1)).strip()


def extract_sections(html: str) -> list[tuple[str, str]]:
    """Return ``(label, markup)`` for each marker block found in ``html``."""
    found = []
    for section in SECTION_PATTERNS:
        match = section.pattern.search(html)
        if match:
            found.append((section.label, match.group(1).strip()))
    return found


def build_design_context(html: str) -> str:
    """Build the design-system prompt for a screen.

    Never fails: when nothing matches, the prompt only carries the
    layout fallback note.
    """
    parts = [PROMPT_HEADER]

    config = extract_tailwind_config(html)
    if config:
        parts.append(
            "### Design Tokens (Tailwind)\n"
            "Use these EXACT colors and fonts:\n"
            f"```json\n{config}\n```\n\n"
        )

    sections = extract_sections(html)
    for label, markup in sections:
        parts.append(
            f"### {label} Style\n"
            "Replicate this structure:\n"
            f"```html\n{markup}\n```\n\n"
        )

    if not sections:
        parts.append(LAYOUT_FALLBACK)

    return "".join(parts)


__all__ = [
    "SECTION_PATTERNS",
    "build_design_context",
    "extract_sections",
    "extract_tailwind_config",
]
