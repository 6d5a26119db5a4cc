"""Strip capture artifacts from recorded shell output.

When the user corrects a typo, the terminal answers with backspaces, DEL
bytes and cursor-left / clear-line escapes. The cleaned Input record already
reflects the corrected text, so these sequences are removed from Output
frames before they are stored. Configurable via pattern lists.
"""

import re
from dataclasses import dataclass, field

# Terminal-driven corrections that must not leak into stored output
_DEFAULT_PATTERNS: list[str] = [
    # Backspace (BS)
    r"\x08+",
    # Delete (DEL)
    r"\x7f+",
    # Clear to end of line
    r"\x1b\[K",
    # Cursor left, with or without a count
    r"\x1b\[\d*D",
]


@dataclass
class ArtifactFilter:
    """Configuration for output artifact stripping.

    Attributes:
        patterns: Regexes removed from output. Defaults cover BS, DEL,
            clear-line and cursor-left sequences.
        extra_patterns: Additional regexes appended to the defaults.
    """

    patterns: list[str] = field(default_factory=list)
    extra_patterns: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.patterns:
            self.patterns = list(_DEFAULT_PATTERNS)
        self._compiled = [re.compile(p) for p in self.all_patterns]

    @property
    def all_patterns(self) -> list[str]:
        return self.patterns + self.extra_patterns

    def apply(self, text: str) -> str:
        for pattern in self._compiled:
            text = pattern.sub("", text)
        return text


def strip_artifacts(text: str, config: ArtifactFilter | None = None) -> str:
    """Remove capture-artifact control sequences from output text.

    Args:
        text: Raw shell output chunk.
        config: Filter configuration. Uses defaults if None.

    Returns:
        The text with every configured artifact sequence removed.
    """
    if config is None:
        config = ArtifactFilter()
    return config.apply(text)


def is_noise(text: str, config: ArtifactFilter | None = None) -> bool:
    """True when nothing is left of ``text`` once artifacts are stripped."""
    return strip_artifacts(text, config) == ""
