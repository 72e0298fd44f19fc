"""Domain constants and enumerations for validation.

The palette is closed: category colors are stored as one of these tokens and
resolve to fixed hex literals. Anything else falls back to the neutral gray.
"""

from enum import Enum
from typing import Literal, Tuple


class ColorToken(str, Enum):
    TEAL = "teal-400"
    PURPLE = "purple-400"
    PINK = "pink-400"
    ORANGE = "orange-400"
    CYAN = "cyan-400"
    LIME = "lime-400"
    AMBER = "amber-400"
    ROSE = "rose-400"
    INDIGO = "indigo-400"
    EMERALD = "emerald-400"
    FUCHSIA = "fuchsia-400"
    SKY = "sky-400"
    GRAY = "gray-500"  # neutral; reserved for the uncategorized bucket

    @property
    def hex(self) -> str:
        return _HEX[self]

    @classmethod
    def resolve(cls, token: object) -> "ColorToken":
        """Return the palette entry for ``token`` or the neutral gray."""
        if isinstance(token, cls):
            return token
        try:
            return cls(str(token))
        except ValueError:
            return cls.GRAY


_HEX = {
    ColorToken.TEAL: "#2dd4bf",
    ColorToken.PURPLE: "#c084fc",
    ColorToken.PINK: "#f472b6",
    ColorToken.ORANGE: "#fb923c",
    ColorToken.CYAN: "#22d3ee",
    ColorToken.LIME: "#a3e635",
    ColorToken.AMBER: "#fbbf24",
    ColorToken.ROSE: "#fb7185",
    ColorToken.INDIGO: "#818cf8",
    ColorToken.EMERALD: "#34d399",
    ColorToken.FUCHSIA: "#e879f9",
    ColorToken.SKY: "#38bdf8",
    ColorToken.GRAY: "#6b7280",
}

# Assignable to user categories, in rotation order.
CATEGORY_PALETTE: Tuple[ColorToken, ...] = tuple(
    c for c in ColorToken if c is not ColorToken.GRAY
)

NEUTRAL_COLOR = ColorToken.GRAY
UNCATEGORIZED_NAME = "Uncategorized"

CategoryKind = Literal["tag", "bank"]
CATEGORY_KINDS = ("tag", "bank")
