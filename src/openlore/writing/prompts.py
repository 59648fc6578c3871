"""
Prompt templates and composer options for creative writing.

Templates give the writer a starting structure; length and style options
become extra instructions appended to the system prompt.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PromptTemplate:
    id: str
    label: str
    description: str
    template: str
    icon: str


@dataclass(frozen=True)
class LengthOption:
    id: str
    label: str
    description: str
    word_range: tuple[int, int]


@dataclass(frozen=True)
class StyleOption:
    id: str
    label: str
    description: str
    system_prompt: str


PROMPT_TEMPLATES: list[PromptTemplate] = [
    PromptTemplate(
        id="describe-scene",
        label="Describe a Scene",
        description="Paint a vivid picture of a setting or moment",
        template="Describe the scene where [LOCATION/SITUATION]. "
        "Focus on [SENSORY DETAILS/ATMOSPHERE].",
        icon="🎬",
    ),
    PromptTemplate(
        id="dialogue",
        label="Write Dialogue",
        description="Create a conversation between characters",
        template="Write a dialogue between [CHARACTER 1] and [CHARACTER 2] "
        "about [TOPIC/CONFLICT].",
        icon="💬",
    ),
    PromptTemplate(
        id="continue",
        label="Continue the Story",
        description="Pick up where you left off",
        template="Continue from where [LAST EVENT]. "
        "The next thing that happens is [DIRECTION/HINT].",
        icon="➡️",
    ),
    PromptTemplate(
        id="introduce-character",
        label="Introduce a Character",
        description="Bring a new character into the narrative",
        template="Introduce [CHARACTER NAME], a [BRIEF DESCRIPTION]. "
        "They enter the story by [ACTION/CIRCUMSTANCE].",
        icon="👤",
    ),
    PromptTemplate(
        id="build-tension",
        label="Build Tension",
        description="Increase suspense and stakes",
        template="Build tension as [SITUATION DESCRIPTION]. "
        "Hint at [THREAT/DANGER] while [CHARACTER] [ACTION].",
        icon="⚡",
    ),
    PromptTemplate(
        id="action-sequence",
        label="Action Sequence",
        description="Write fast-paced action or conflict",
        template="Write an action sequence where [CHARACTER(S)] must [GOAL]. "
        "The challenge is [OBSTACLE].",
        icon="💥",
    ),
    PromptTemplate(
        id="emotional-moment",
        label="Emotional Moment",
        description="Create a poignant or moving scene",
        template="Write an emotional scene where [CHARACTER] experiences "
        "[EMOTION] because [REASON].",
        icon="💔",
    ),
    PromptTemplate(
        id="world-building",
        label="World Building",
        description="Expand on your setting's lore",
        template="Describe the [ASPECT: culture/history/magic/technology] of "
        "[PLACE/SOCIETY]. Include [SPECIFIC DETAIL].",
        icon="🌍",
    ),
]

LENGTH_OPTIONS: list[LengthOption] = [
    LengthOption("short", "Short", "A brief passage", (100, 300)),
    LengthOption("paragraph", "Paragraph", "A standard paragraph", (300, 500)),
    LengthOption("page", "Page", "About a page of text", (500, 800)),
    LengthOption("extended", "Extended", "A longer passage", (800, 1200)),
]

DEFAULT_LENGTH = "paragraph"

STYLE_OPTIONS: list[StyleOption] = [
    StyleOption(
        id="descriptive",
        label="Descriptive",
        description="Rich sensory details and vivid imagery",
        system_prompt="Write with rich, evocative descriptions. Focus on sensory "
        "details - sights, sounds, smells, textures. Paint vivid mental images "
        "for the reader.",
    ),
    StyleOption(
        id="dialogue-heavy",
        label="Dialogue-heavy",
        description="Focus on character conversations",
        system_prompt="Prioritize dialogue and character interaction. Let "
        "conversations drive the narrative. Use dialogue to reveal character "
        "and advance plot.",
    ),
    StyleOption(
        id="action-packed",
        label="Action-packed",
        description="Fast-paced and dynamic",
        system_prompt="Write with urgency and momentum. Use short, punchy "
        "sentences. Focus on movement, conflict, and immediate stakes.",
    ),
    StyleOption(
        id="introspective",
        label="Introspective",
        description="Deep character thoughts and feelings",
        system_prompt="Explore internal landscapes. Focus on thoughts, memories, "
        "and emotional processing. Let the reader inside the character's mind.",
    ),
    StyleOption(
        id="poetic",
        label="Poetic",
        description="Lyrical and literary language",
        system_prompt="Use literary language and poetic devices. Employ metaphor, "
        "rhythm, and careful word choice. Aim for prose that sings.",
    ),
]


def get_prompt_template(template_id: str) -> PromptTemplate | None:
    return next((t for t in PROMPT_TEMPLATES if t.id == template_id), None)


def get_length_option(length_id: str) -> LengthOption | None:
    return next((o for o in LENGTH_OPTIONS if o.id == length_id), None)


def get_style_option(style_id: str) -> StyleOption | None:
    return next((o for o in STYLE_OPTIONS if o.id == style_id), None)


def build_length_instruction(length_id: str) -> str:
    option = get_length_option(length_id)
    if option is None:
        return ""
    low, high = option.word_range
    return f"Aim for approximately {low}-{high} words."


def build_style_instruction(style_id: str) -> str:
    option = get_style_option(style_id)
    return option.system_prompt if option else ""


def build_system_prompt(
    system: str | None,
    length: str | None = None,
    style: str | None = None,
) -> str | None:
    """Combine the writer's system prompt with length and style instructions.

    Parts are separated by a blank line. Returns None when nothing remains,
    so the request carries no system prompt at all.
    """
    parts = [
        (system or "").strip(),
        build_length_instruction(length) if length else "",
        build_style_instruction(style) if style else "",
    ]
    combined = "\n\n".join(part for part in parts if part)
    return combined or None
