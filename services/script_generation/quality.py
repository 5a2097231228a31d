"""Structural completeness score for a normalized generation."""

from typing import Any

from .postprocessor import is_placeholder


def quality_score(content: dict[str, Any], placeholder_fields: list[str] | None = None) -> int:
    """Score 0-100. Substituted placeholder content never earns points."""
    substituted = set(placeholder_fields or [])
    score = 0

    hook_text = (content.get("hook") or {}).get("text") or ""
    if "hook" not in substituted and not is_placeholder(hook_text) and len(hook_text) > 10:
        score += 20

    scenes = content.get("scenes") or []
    if "scenes" not in substituted and len(scenes) >= 3:
        score += 20
        complete = all(
            scene.get("dialogue")
            and scene.get("visual_description")
            and not is_placeholder(scene.get("dialogue"))
            and not is_placeholder(scene.get("visual_description"))
            for scene in scenes
        )
        if complete:
            score += 10

    if content.get("brand_mentions"):
        score += 20

    primary_cta = (content.get("call_to_action") or {}).get("primary")
    if "call_to_action" not in substituted and primary_cta and not is_placeholder(primary_cta):
        score += 15

    if (content.get("hashtags") or {}).get("primary"):
        score += 10
    if content.get("mentions"):
        score += 5

    return min(score, 100)
