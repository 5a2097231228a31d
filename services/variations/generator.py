"""A/B variation generator.

Produces rephrased alternatives for the hook, the call to action and the
brand mentions of a finished script. Only categories whose source field is
present (and not placeholder content) are produced.
"""

import re
from collections.abc import Callable
from typing import Any

from services.script_generation.postprocessor import is_placeholder
from shared.config import config
from shared.enums import Platform, VariationType
from shared.logging_utils import setup_logging
from shared.utils import utcnow

logger = setup_logging("variation-generator")

MAX_VARIATIONS = 6

_HARD_SELL = re.compile(r"check out|buy now|click here", re.IGNORECASE)


def to_question_hook(text: str) -> str:
    return f"Have you ever wondered {_lower_first_clause(text)}?"


def to_statistic_hook(text: str) -> str:
    return f"Did you know that 90% of people {_lower_first_clause(text)}?"


def to_story_hook(text: str) -> str:
    return f"Last week, something amazing happened that changed how I think about {_lower_first_clause(text)}"


def to_urgent_cta(text: str) -> str:
    return f"{text} - Limited time offer!"


def to_social_proof_cta(text: str) -> str:
    return f"{text} (Loved by 10K+ creators)"


def soften_brand_mention(text: str) -> str:
    return _HARD_SELL.sub("discover", text)


def _lower_first_clause(text: str) -> str:
    return text.strip().rstrip("?!.").lower()


class VariationGenerator:
    def __init__(self, max_variations: int | None = None) -> None:
        configured = config.get_pipeline_value("variations.max_variations", MAX_VARIATIONS)
        self.max_variations = min(max_variations or configured, MAX_VARIATIONS)
        self._builders: dict[VariationType, Callable[[dict[str, Any]], list[dict[str, Any]]]] = {
            VariationType.HOOK: self.hook_variations,
            VariationType.CTA: self.cta_variations,
            VariationType.BRAND: self.brand_variations,
        }

    def generate_variations(self, content: dict[str, Any] | None, platform: Platform | str) -> list[dict[str, Any]]:
        """All applicable variations, capped; never raises."""
        try:
            if not isinstance(content, dict):
                logger.warning("Invalid generated content provided for A/B variations")
                return []
            variations: list[dict[str, Any]] = []
            for builder in self._builders.values():
                variations.extend(builder(content))
            variations = variations[: self.max_variations]
            logger.info(f"Generated {len(variations)} A/B variations for {Platform(platform).value}")
            return variations
        except Exception as exc:
            logger.error(f"Error generating A/B variations: {exc}")
            return []

    def create_variation(
        self, content: dict[str, Any], variation_type: VariationType, existing: int = 0
    ) -> list[dict[str, Any]]:
        """Variations of one category, limited to the room left under the cap."""
        room = max(self.max_variations - existing, 0)
        return self._builders[variation_type](content)[:room]

    def hook_variations(self, content: dict[str, Any]) -> list[dict[str, Any]]:
        hook = content.get("hook") or {}
        text = hook.get("text")
        if not text or is_placeholder(text):
            return []
        framings = [
            ("Question Hook", "Start with engaging question", to_question_hook, "Question-based hook for engagement"),
            ("Stat Hook", "Start with surprising statistic", to_statistic_hook, "Statistic-based hook for credibility"),
            ("Story Hook", "Start with personal story", to_story_hook, "Story-based hook for emotional connection"),
        ]
        return [
            self._variation(
                VariationType.HOOK,
                title,
                description,
                {"hook": {**hook, "text": transform(text), "notes": notes}},
            )
            for title, description, transform, notes in framings
        ]

    def cta_variations(self, content: dict[str, Any]) -> list[dict[str, Any]]:
        cta = content.get("call_to_action") or {}
        primary = cta.get("primary")
        if not primary or is_placeholder(primary):
            return []
        return [
            self._variation(
                VariationType.CTA,
                "Urgent CTA",
                "Create urgency in call-to-action",
                {
                    "call_to_action": {
                        **cta,
                        "primary": to_urgent_cta(primary),
                        "visual_treatment": "Bold text with timer animation",
                    }
                },
            ),
            self._variation(
                VariationType.CTA,
                "Social Proof CTA",
                "Include social proof in CTA",
                {
                    "call_to_action": {
                        **cta,
                        "primary": to_social_proof_cta(primary),
                        "secondary": "Join thousands of satisfied customers",
                    }
                },
            ),
        ]

    def brand_variations(self, content: dict[str, Any]) -> list[dict[str, Any]]:
        mentions = content.get("brand_mentions") or []
        if not mentions:
            return []
        softened = [
            {**mention, "type": "natural_mention", "content": soften_brand_mention(mention.get("content") or "")}
            for mention in mentions
        ]
        return [
            self._variation(
                VariationType.BRAND,
                "Subtle Integration",
                "More natural brand integration",
                {"brand_mentions": softened},
            )
        ]

    @staticmethod
    def _variation(
        variation_type: VariationType, title: str, description: str, changes: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "variation_type": variation_type.value,
            "title": title,
            "description": description,
            "changes": changes,
            "created_at": utcnow().isoformat(),
        }
