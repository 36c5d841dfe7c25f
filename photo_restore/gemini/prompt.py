from typing import Optional, Sequence

RESTORATION_GOALS = (
    "Enhance clarity and sharpness while maintaining natural appearance",
    "Correct and balance colors for accurate, vibrant reproduction",
    "Reduce noise, grain, and compression artifacts",
    "Repair any visible damage (scratches, tears, stains, fading)",
    "Improve contrast and exposure for optimal viewing",
    "Enhance fine details and textures",
    "Remove any dust spots or blemishes",
)

FIDELITY_CONSTRAINTS = (
    "Preserve the original composition and all subjects",
    "Keep the restoration realistic and natural",
    "Maintain the historical character and authenticity of the photo",
    "Do not add or remove people or major elements",
    "Match the style and era of the original photograph",
)


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def build_prompt(
    goals: Optional[Sequence[str]] = None,
    constraints: Optional[Sequence[str]] = None,
) -> str:
    """Return the restoration instruction sent alongside every photo.

    Both sections are mandatory; passing an empty list for either is an error.
    """
    goals = RESTORATION_GOALS if goals is None else tuple(goals)
    constraints = FIDELITY_CONSTRAINTS if constraints is None else tuple(constraints)
    if not goals or not constraints:
        raise ValueError("prompt_requires_goals_and_constraints")

    return (
        "You are a professional photo restoration expert. Using the provided image, "
        "create a high-quality restored version with these improvements:\n\n"
        f"RESTORATION GOALS:\n{_bullets(goals)}\n\n"
        f"IMPORTANT:\n{_bullets(constraints)}\n\n"
        "Generate a professional, high-quality restored version of this photograph."
    )
