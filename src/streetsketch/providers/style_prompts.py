"""Art styles offered to users and the prompt sent to the image model."""

from __future__ import annotations

DEFAULT_STYLE = "Watercolor"

STYLE_DESCRIPTIONS: dict[str, str] = {
    "Watercolor": (
        "transform the result into a vibrant and artistic watercolor painting. "
        "The style should be loose and expressive, with visible brushstrokes and "
        "color bleeds, typical of a real watercolor painting."
    ),
    "Oil Painting": (
        "transform the result into a rich and textured oil painting. The style "
        "should feature visible, impasto brushstrokes and a deep color palette."
    ),
    "Pencil Sketch": (
        "transform the result into a detailed pencil sketch. The style should be "
        "monochromatic, emphasizing lines, shading, and texture to create a "
        "hand-drawn, artistic feel."
    ),
}

ART_STYLES: tuple[str, ...] = tuple(STYLE_DESCRIPTIONS)

_PROMPT_TEMPLATE = (
    "Analyze the provided street view image of a property.\n\n"
    "First, digitally remove all transient Street View objects, specifically people, "
    "moving or parked cars, bicycles, and garbage cans, to create a clean, timeless, "
    "architectural front-on view of the property and its immediate, natural "
    "surroundings (trees, sky, lawn) that fade to white.\n\n"
    "Do not remove aesthetic features: flag poles, fences, trees or bushes, and "
    "don't add any that aren't present.\n\n"
    "After cleaning the image, {description} Ensure the final output is only the "
    "generated image itself, with no text or borders."
)


def build_prompt(art_style: str) -> str:
    """Return the stylization prompt; unknown styles fall back to watercolor."""
    description = STYLE_DESCRIPTIONS.get(art_style, STYLE_DESCRIPTIONS[DEFAULT_STYLE])
    return _PROMPT_TEMPLATE.format(description=description)
