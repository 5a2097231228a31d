"""Prompt construction for structured script generation."""

from shared.enums import Granularity, Platform

SYSTEM_PROMPT = (
    "You are an expert content script writer specializing in social media content for creators. "
    "Generate detailed, production-ready scripts that are engaging and platform-optimized. "
    "Always answer with a single JSON object and nothing else."
)

PLATFORM_SPECS: dict[Platform, dict] = {
    Platform.INSTAGRAM_REEL: {
        "aspect_ratio": "9:16",
        "features": ["music", "effects", "text_overlay", "trending_audio"],
        "max_duration": 90,
    },
    Platform.INSTAGRAM_POST: {
        "aspect_ratio": "1:1",
        "features": ["carousel", "single_image", "detailed_captions"],
        "max_duration": 0,
    },
    Platform.INSTAGRAM_STORY: {
        "aspect_ratio": "9:16",
        "features": ["stickers", "polls", "swipe_up", "text_overlay"],
        "max_duration": 60,
    },
    Platform.YOUTUBE_VIDEO: {
        "aspect_ratio": "16:9",
        "features": ["intro", "outro", "chapters", "end_screen"],
        "max_duration": 3600,
    },
    Platform.YOUTUBE_SHORTS: {
        "aspect_ratio": "9:16",
        "features": ["music", "effects", "quick_cuts", "trending_sounds"],
        "max_duration": 60,
    },
    Platform.LINKEDIN_VIDEO: {
        "aspect_ratio": "16:9",
        "features": ["professional_tone", "captions", "cta", "educational"],
        "max_duration": 600,
    },
    Platform.LINKEDIN_POST: {
        "aspect_ratio": "1:1",
        "features": ["professional_tone", "document_carousel", "detailed_captions"],
        "max_duration": 0,
    },
    Platform.TWITTER_POST: {
        "aspect_ratio": "16:9",
        "features": ["captions", "short_copy", "threads"],
        "max_duration": 140,
    },
    Platform.FACEBOOK_REEL: {
        "aspect_ratio": "9:16",
        "features": ["music", "effects", "text_overlay", "captions"],
        "max_duration": 90,
    },
    Platform.TIKTOK_VIDEO: {
        "aspect_ratio": "9:16",
        "features": ["trending_sounds", "duets", "quick_cuts", "text_overlay"],
        "max_duration": 600,
    },
}

PLATFORM_INSTRUCTIONS: dict[Platform, str] = {
    Platform.INSTAGRAM_REEL: "Focus on quick cuts, trending audio, vertical format optimization, and high visual impact",
    Platform.INSTAGRAM_POST: "Emphasize strong static visuals or carousel storytelling with detailed captions",
    Platform.INSTAGRAM_STORY: "Keep each frame short and interactive, using stickers or polls to drive taps",
    Platform.YOUTUBE_VIDEO: "Include proper intro/outro, maintain viewer retention, optimize for watch time",
    Platform.YOUTUBE_SHORTS: "Quick hook, fast-paced content, trending elements, maximum engagement",
    Platform.LINKEDIN_VIDEO: "Professional tone, educational value, clear business message, subtle branding",
    Platform.LINKEDIN_POST: "Professional insight up front, skimmable structure, restrained branding",
    Platform.TWITTER_POST: "Lead with the punchline, keep copy tight, make it easy to quote and share",
    Platform.FACEBOOK_REEL: "Community-friendly storytelling, captions for sound-off viewing, clear payoff",
    Platform.TIKTOK_VIDEO: "Hook in the first second, native trends and sounds, authentic on-camera delivery",
}

GRANULARITY_INSTRUCTIONS: dict[Granularity, str] = {
    Granularity.BASIC: """
- Focus on main content flow and key talking points
- Include basic visual descriptions
- Minimal technical details
- 3-5 scenes maximum""",
    Granularity.DETAILED: """
- Include specific camera angles and lighting suggestions
- Detailed visual descriptions and prop requirements
- Scene-by-scene dialogue breakdown
- Transition suggestions between scenes
- 5-8 scenes with comprehensive coverage""",
    Granularity.COMPREHENSIVE: """
- Shot-by-shot breakdown with precise timing
- Detailed camera work (angles, movements, focus)
- Lighting and technical specifications
- Complete prop and costume requirements
- Alternative scene variations
- Director notes and production tips
- 8+ scenes with exhaustive detail""",
}

RESPONSE_SCHEMA = """{
  "hook": {
    "text": "Compelling opening line to grab attention in first 3 seconds",
    "visual_cue": "Description of opening visual",
    "duration": "0-3 seconds",
    "notes": "Why this hook works for the platform"
  },
  "scenes": [
    {
      "scene_number": 1,
      "title": "Scene title/purpose",
      "timeframe": "3-15 seconds",
      "dialogue": "Exact words to be spoken",
      "visual_description": "What viewers will see",
      "camera_angle": "Close-up/Wide/Medium shot etc",
      "lighting": "Natural/Studio/Dramatic etc",
      "props": ["prop1", "prop2"],
      "transitions": "How to transition to next scene",
      "notes": "Director notes or tips"
    }
  ],
  "brand_mentions": [
    {
      "timing": "at 15 seconds",
      "type": "natural_mention",
      "content": "How to naturally mention the brand",
      "duration": "3-5 seconds",
      "placement": "verbal"
    }
  ],
  "call_to_action": {
    "primary": "Main CTA text",
    "secondary": "Optional secondary CTA",
    "placement": "end",
    "visual_treatment": "How CTA appears visually"
  },
  "hashtags": {
    "primary": ["#primaryhashtag1", "#primaryhashtag2"],
    "secondary": ["#secondary1", "#secondary2"],
    "trending": ["#trending1", "#trending2"]
  },
  "mentions": [
    {"handle": "@brandhandle", "purpose": "Brand mention", "timing": "throughout"}
  ],
  "audio_suggestions": {
    "music_style": "Upbeat/Calm/Trending etc",
    "trending_audio": "Specific trending sound if applicable",
    "voiceover_notes": "Tone and pace instructions",
    "sound_effects": ["effect1", "effect2"]
  },
  "text_overlays": [
    {"text": "Text to display on screen", "timing": "5-8 seconds", "style": "Bold/Casual/Animated", "position": "center/top/bottom"}
  ],
  "alternative_endings": [
    {"description": "Alternative ending option", "content": "Different ending script", "use_case": "When to use this ending"}
  ]
}"""


def get_platform_specs(platform: Platform) -> dict:
    return PLATFORM_SPECS.get(platform, PLATFORM_SPECS[Platform.INSTAGRAM_REEL])


def build_generation_prompt(
    brief_text: str,
    style_notes: str | None,
    platform: Platform,
    granularity: Granularity,
    duration_seconds: int,
) -> str:
    specs = get_platform_specs(platform)
    granularity_text = GRANULARITY_INSTRUCTIONS.get(
        granularity, GRANULARITY_INSTRUCTIONS[Granularity.DETAILED]
    )
    platform_text = PLATFORM_INSTRUCTIONS.get(
        platform, PLATFORM_INSTRUCTIONS[Platform.INSTAGRAM_REEL]
    )

    return f"""
Create a detailed content script based on the following brief and creator preferences.

BRIEF CONTENT:
\"\"\"
{brief_text}
\"\"\"

CREATOR STYLE PREFERENCES:
\"\"\"
{style_notes or 'No specific style preferences provided.'}
\"\"\"

SCRIPT REQUIREMENTS:
- Platform: {platform.value}
- Target Duration: {duration_seconds} seconds
- Aspect Ratio: {specs['aspect_ratio']}
- Key Features: {', '.join(specs['features'])}

GRANULARITY LEVEL: {granularity.value}
{granularity_text}

CRITICAL INSTRUCTIONS:
- Return ONLY valid JSON with no markdown formatting
- Do NOT wrap JSON in code blocks or backticks
- Do NOT include explanatory text before or after JSON

Return this EXACT JSON structure with actual content:

{RESPONSE_SCHEMA}

PLATFORM-SPECIFIC REQUIREMENTS:
{platform_text}

CONTENT GUIDELINES:
- Optimize for {platform.value} audience engagement
- Include natural brand integration
- Ensure script fits {duration_seconds} seconds duration
- Include trending elements where appropriate
- Ensure dialogue sounds natural and conversational
""".strip()
