"""
Post-processing of model output into a structurally complete script.

The model is asked for a fixed JSON shape but may omit fields, use camelCase
keys, return strings where objects were expected, or produce nothing usable.
``normalize`` always returns content that validates as ``GeneratedContent``;
every substituted value carries ``PLACEHOLDER`` and its field is listed in
``placeholder_fields``.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from shared.enums import PROFESSIONAL_PLATFORMS, SHORT_VERTICAL_PLATFORMS, Platform
from shared.logging_utils import setup_logging
from shared.models import (
    AlternativeEnding,
    AudioSuggestions,
    BrandMention,
    CallToAction,
    GeneratedContent,
    HashtagSet,
    Hook,
    Mention,
    Scene,
    TextOverlay,
)

logger = setup_logging("script-postprocessor")

PLACEHOLDER = "[PLACEHOLDER]"
MIN_SCENES = 3
MAX_DEFAULT_SCENES = 8
SECONDS_PER_SCENE = 15

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class GenerationParseError(ValueError):
    """Model text could not be parsed as a JSON object."""


@dataclass
class NormalizedGeneration:
    content: dict[str, Any]
    placeholder_fields: list[str] = field(default_factory=list)


def placeholder(text: str) -> str:
    return f"{PLACEHOLDER} {text}"


def is_placeholder(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(PLACEHOLDER)


def parse_generation(text: str) -> dict[str, Any]:
    """Parse model text into a dict, tolerating a surrounding code fence."""
    candidate = (text or "").strip()
    fenced = _CODE_FENCE.match(candidate)
    if fenced:
        candidate = fenced.group(1)
    if not candidate:
        raise GenerationParseError("Empty completion")
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise GenerationParseError(f"Completion is not valid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise GenerationParseError(f"Completion is JSON {type(parsed).__name__}, not an object")
    return parsed


def normalize(raw: Any, platform: Platform, duration_seconds: int) -> NormalizedGeneration:
    try:
        return _normalize(raw, platform, duration_seconds)
    except (TypeError, ValueError, AttributeError) as exc:
        logger.error(f"Error post-processing generation, using minimal structure: {exc}")
        return minimal_generation(duration_seconds)


def _normalize(raw: Any, platform: Platform, duration_seconds: int) -> NormalizedGeneration:
    data = _snake_keys(raw) if isinstance(raw, dict) else {}
    placeholders: list[str] = []

    hook = _build_hook(data.get("hook"))
    if hook is None:
        hook = Hook(
            text=placeholder("Engaging hook needed"),
            visual_cue=placeholder("Opening visual needed"),
            notes="Hook optimization needed",
        )
        placeholders.append("hook")

    scenes, scenes_synthesized, details_filled = _build_scenes(data.get("scenes"), duration_seconds)
    if scenes_synthesized:
        placeholders.append("scenes")
    if details_filled:
        placeholders.append("scene_details")

    call_to_action = _build_call_to_action(data.get("call_to_action"))
    if call_to_action is None:
        call_to_action = CallToAction(primary=placeholder("Call to action needed"))
        placeholders.append("call_to_action")

    hashtags = _build_hashtags(data.get("hashtags"))
    if hashtags is None:
        hashtags = HashtagSet()
        placeholders.append("hashtags")

    content = GeneratedContent(
        hook=hook,
        scenes=scenes,
        brand_mentions=_build_list(data.get("brand_mentions"), _build_brand_mention),
        call_to_action=call_to_action,
        hashtags=hashtags,
        mentions=_build_list(data.get("mentions"), _build_mention),
        audio_suggestions=_build_audio(data.get("audio_suggestions")),
        text_overlays=_build_list(data.get("text_overlays"), _build_overlay),
        alternative_endings=_build_list(data.get("alternative_endings"), _build_ending),
    )
    apply_platform_adjustments(content, platform)
    return NormalizedGeneration(content=content.model_dump(mode="json"), placeholder_fields=placeholders)


def default_scenes(duration_seconds: int, start_number: int = 1, count: int | None = None) -> list[Scene]:
    """Evenly timed placeholder scenes, one per ~15 seconds, 3 to 8 of them."""
    duration = max(int(duration_seconds or 0), 1)
    total = count if count is not None else max(MIN_SCENES, min(MAX_DEFAULT_SCENES, duration // SECONDS_PER_SCENE))
    ladder_size = max(total, start_number - 1 + total)
    step = max(duration // ladder_size, 1)

    scenes = []
    for offset in range(total):
        index = start_number - 1 + offset
        start = index * step
        end = min((index + 1) * step, duration)
        last = offset == total - 1
        scenes.append(
            Scene(
                scene_number=index + 1,
                title=f"Scene {index + 1}",
                timeframe=f"{start}-{end} seconds",
                dialogue=placeholder("Content dialogue needed"),
                visual_description=placeholder("Visual description needed"),
                transitions="End with CTA" if last else "Cut to next scene",
            )
        )
    return scenes


def minimal_generation(duration_seconds: int) -> NormalizedGeneration:
    content = GeneratedContent(
        hook=Hook(
            text=placeholder("Manual script needed"),
            visual_cue=placeholder("Opening visual needed"),
            notes="Manual optimization required",
        ),
        scenes=default_scenes(duration_seconds),
        call_to_action=CallToAction(primary=placeholder("Manual CTA needed")),
        audio_suggestions=AudioSuggestions(music_style="TBD", voiceover_notes="Manual planning needed"),
    )
    return NormalizedGeneration(
        content=content.model_dump(mode="json"),
        placeholder_fields=["hook", "scenes", "call_to_action", "hashtags"],
    )


def apply_platform_adjustments(content: GeneratedContent, platform: Platform) -> None:
    if platform in SHORT_VERTICAL_PLATFORMS:
        # Strong opening for vertical feeds
        content.scenes[0].camera_angle = "Close-up"
    elif platform == Platform.YOUTUBE_VIDEO and len(content.scenes) > 2:
        content.scenes[0].notes = "Channel intro and video preview"
        content.scenes[-1].notes = "End screen and subscribe CTA"

    if platform in PROFESSIONAL_PLATFORMS:
        content.audio_suggestions.music_style = "Professional/Minimal"


def _build_hook(value: Any) -> Hook | None:
    if isinstance(value, str) and value.strip():
        return Hook(text=value.strip())
    if not isinstance(value, dict) or not _text(value.get("text")):
        return None
    return Hook(
        text=_text(value.get("text")),
        visual_cue=_text(value.get("visual_cue")),
        duration=_text(value.get("duration"), "0-3 seconds"),
        notes=_text(value.get("notes")),
    )


def _build_scenes(value: Any, duration_seconds: int) -> tuple[list[Scene], bool, bool]:
    """Returns (scenes, ladder_synthesized, details_filled)."""
    raw_scenes = [scene for scene in value if isinstance(scene, dict)] if isinstance(value, list) else []
    if not raw_scenes:
        return default_scenes(duration_seconds), True, False

    count = len(raw_scenes)
    step = max(int(duration_seconds or 0) // max(count, MIN_SCENES), 1)
    details_filled = False
    scenes: list[Scene] = []
    for index, scene in enumerate(raw_scenes):
        dialogue = _text(scene.get("dialogue"))
        visual = _text(scene.get("visual_description"))
        if not dialogue or not visual:
            details_filled = True
        props = scene.get("props")
        scenes.append(
            Scene(
                scene_number=index + 1,
                title=_text(scene.get("title"), f"Scene {index + 1}"),
                timeframe=_text(scene.get("timeframe"), f"{index * step}-{(index + 1) * step} seconds"),
                dialogue=dialogue or placeholder("Dialogue needed"),
                visual_description=visual or placeholder("Visual description needed"),
                camera_angle=_text(scene.get("camera_angle"), "Medium shot"),
                lighting=_text(scene.get("lighting"), "Natural"),
                props=[_text(prop) for prop in props if _text(prop)] if isinstance(props, list) else [],
                transitions=_text(scene.get("transitions"), "Cut to next scene"),
                notes=_text(scene.get("notes")),
            )
        )

    synthesized = False
    if len(scenes) < MIN_SCENES:
        padding = MIN_SCENES - len(scenes)
        scenes.extend(default_scenes(duration_seconds, start_number=len(scenes) + 1, count=padding))
        synthesized = True
    return scenes, synthesized, details_filled


def _build_call_to_action(value: Any) -> CallToAction | None:
    if isinstance(value, str) and value.strip():
        return CallToAction(primary=value.strip())
    if not isinstance(value, dict) or not _text(value.get("primary")):
        return None
    return CallToAction(
        primary=_text(value.get("primary")),
        secondary=_text(value.get("secondary")),
        placement=_text(value.get("placement"), "end"),
        visual_treatment=_text(value.get("visual_treatment"), "Text overlay"),
    )


def _build_hashtags(value: Any) -> HashtagSet | None:
    if isinstance(value, list):
        return HashtagSet(primary=_tags(value))
    if not isinstance(value, dict):
        return None
    return HashtagSet(
        primary=_tags(value.get("primary")),
        secondary=_tags(value.get("secondary")),
        trending=_tags(value.get("trending")),
    )


def _build_audio(value: Any) -> AudioSuggestions:
    if not isinstance(value, dict):
        return AudioSuggestions()
    effects = value.get("sound_effects")
    return AudioSuggestions(
        music_style=_text(value.get("music_style"), "Upbeat"),
        trending_audio=_text(value.get("trending_audio")),
        voiceover_notes=_text(value.get("voiceover_notes"), "Clear and engaging"),
        sound_effects=[_text(effect) for effect in effects if _text(effect)] if isinstance(effects, list) else [],
    )


def _build_brand_mention(value: Any) -> BrandMention | None:
    if isinstance(value, str):
        return BrandMention(content=value) if value.strip() else None
    if not isinstance(value, dict):
        return None
    return BrandMention(
        timing=_text(value.get("timing")),
        type=_text(value.get("type"), "natural_mention"),
        content=_text(value.get("content")),
        duration=_text(value.get("duration")),
        placement=_text(value.get("placement"), "verbal"),
    )


def _build_mention(value: Any) -> Mention | None:
    if isinstance(value, str):
        return Mention(handle=value) if value.strip() else None
    if not isinstance(value, dict):
        return None
    return Mention(
        handle=_text(value.get("handle")),
        purpose=_text(value.get("purpose")),
        timing=_text(value.get("timing")),
    )


def _build_overlay(value: Any) -> TextOverlay | None:
    if isinstance(value, str):
        return TextOverlay(text=value) if value.strip() else None
    if not isinstance(value, dict):
        return None
    return TextOverlay(
        text=_text(value.get("text")),
        timing=_text(value.get("timing")),
        style=_text(value.get("style")),
        position=_text(value.get("position"), "center"),
    )


def _build_ending(value: Any) -> AlternativeEnding | None:
    if isinstance(value, str):
        return AlternativeEnding(content=value) if value.strip() else None
    if not isinstance(value, dict):
        return None
    return AlternativeEnding(
        description=_text(value.get("description")),
        content=_text(value.get("content")),
        use_case=_text(value.get("use_case")),
    )


def _build_list(value: Any, builder) -> list:
    if not isinstance(value, list):
        return []
    return [item for item in (builder(entry) for entry in value) if item is not None]


def _text(value: Any, default: str = "") -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    text = str(value).strip()
    return text or default


def _tags(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    tags = []
    for entry in value:
        tag = _text(entry).replace(" ", "")
        if tag:
            tags.append(tag if tag.startswith("#") else f"#{tag}")
    return tags


def _snake_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {_CAMEL_BOUNDARY.sub(r"_\1", str(key)).lower(): _snake_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_snake_keys(item) for item in value]
    return value
