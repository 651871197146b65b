import json
import logging
from typing import List, Optional

import openai
from pydantic import ValidationError

from adventure.core.config import settings
from adventure.core.i18n import t
from adventure.schemas.game import Language, StoryModel, StoryResponse, Turn

FALLBACK_IMAGE_PROMPT = "Static noise on a television screen, digital art."

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "story": {
            "type": "string",
            "description": "The next part of the story. A single paragraph of 3-5 sentences.",
        },
        "choices": {
            "type": "array",
            "items": {"type": "string"},
            "description": "2-4 distinct choices for the player, each starting with an emoji.",
        },
        "inventory": {
            "type": "array",
            "items": {"type": "string"},
            "description": "The player's current inventory.",
        },
        "quest": {
            "type": "string",
            "description": "The current quest objective.",
        },
        "imagePrompt": {
            "type": "string",
            "description": "A descriptive prompt in English for an image generation model.",
        },
    },
    "required": ["story", "choices", "inventory", "quest", "imagePrompt"],
    "additionalProperties": False,
}


def get_system_instruction(language: Language) -> str:
    """
    Builds the storyteller instruction. Every field follows the requested
    language except `imagePrompt`, which stays English for the image model.
    """
    if language == Language.KO:
        lang_rules = (
            "You MUST write the 'story', 'choices', 'inventory', and 'quest' fields in Korean.\n"
            "The 'imagePrompt' field MUST remain in English for the image model."
        )
    else:
        lang_rules = "All fields ('story', 'choices', 'inventory', 'quest', 'imagePrompt') must be in English."

    return f"""You are a master storyteller for an interactive text-based adventure game.
Your goal is to create a branching narrative where the user's choices matter.
You must respond in a specific JSON format.

Here are the rules:
1.  **Story:** Write the next part of the story. It should be engaging, descriptive, and move the plot forward based on the user's last choice. The story should be a single paragraph of 3-5 sentences.
2.  **Choices:** Provide 2-4 distinct and meaningful choices for the player to make. Each choice should start with a relevant emoji and lead to a different path in the story.
3.  **Inventory:** Keep track of the player's inventory. You can add or remove items based on the story. The inventory should be a list of strings.
4.  **Quest:** Maintain a simple quest for the player to follow. Update it as they make progress.
5.  **ImagePrompt:** Create a descriptive, vivid, and artistic prompt in English for an image generation model that captures the current scene. E.g., "A lone adventurer stands at the edge of a glowing, ethereal forest, a mystical sword in hand, digital art."
6.  **Language:** {lang_rules}

Always respond with a valid JSON object matching the specified schema. Do not include any text outside of the JSON object.
"""


def resolve_story_model(model: StoryModel) -> str:
    if model == StoryModel.DEEP:
        return settings.STORY_MODEL_DEEP
    return settings.STORY_MODEL_FAST


def build_messages(history: List[Turn], choice: str, language: Language) -> List[dict]:
    """
    Maps the history to chat messages: system instruction first, then every
    prior turn in order, then the new user turn.
    """
    messages = [{"role": "system", "content": get_system_instruction(language)}]
    for turn in history:
        role = "assistant" if turn.role == "model" else "user"
        messages.append({"role": role, "content": turn.text})
    messages.append({"role": "user", "content": choice})
    return messages


def fallback_response(language: Language) -> StoryResponse:
    return StoryResponse(
        story=t("fallback_story", language.value),
        choices=[
            t("fallback_choice_listen", language.value),
            t("fallback_choice_path", language.value),
        ],
        inventory=[],
        quest=t("fallback_quest", language.value),
        imagePrompt=FALLBACK_IMAGE_PROMPT,
    )


def _extract_json_from_string(text: str) -> Optional[str]:
    """
    Extracts a JSON object string from a larger string, cleaning up markdown.
    """
    if not text:
        return None

    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]

    text = text.strip()
    first_bracket_pos = text.find('{')
    if first_bracket_pos == -1:
        return None
    last_bracket_pos = text.rfind('}')
    if last_bracket_pos == -1 or last_bracket_pos < first_bracket_pos:
        return None

    return text[first_bracket_pos:last_bracket_pos+1]


def parse_story_response(content: Optional[str], language: Language) -> StoryResponse:
    """
    Parses the raw model reply. Anything that is not a complete story object
    yields the localized fallback instead of raising.
    """
    try:
        json_str = _extract_json_from_string(content or "")
        if not json_str:
            raise ValueError("LLM returned no valid JSON for the story part.")
        story = StoryResponse.model_validate(json.loads(json_str))
        story = story.model_copy(update={"choices": [c.strip() for c in story.choices if c.strip()]})
        if not story.story.strip() or not story.choices or not story.image_prompt.strip():
            raise ValueError("LLM returned an empty story, choices or image prompt.")
        return story
    except (ValueError, ValidationError) as e:
        logging.error(f"Failed to parse story response: {e}. Raw content: {content!r}")

    logging.warning(f"Using fallback story part for language '{language.value}'.")
    return fallback_response(language)


def make_client() -> openai.AsyncOpenAI:
    return openai.AsyncOpenAI(api_key=settings.OPENAI_API_KEY, base_url=settings.OPENAI_BASE_URL)


async def get_next_story_part(
    history: List[Turn],
    choice: str,
    language: Language,
    model: StoryModel,
    client: Optional[openai.AsyncOpenAI] = None,
) -> StoryResponse:
    """
    Generates the next story part from the history and the player's latest
    choice. Transport errors propagate; malformed replies fall back.
    """
    client = client or make_client()
    model_name = resolve_story_model(model)

    logging.info(f"Generating story part with '{model_name}' (history: {len(history)} turns, language: {language.value})")
    response = await client.chat.completions.create(
        model=model_name,
        messages=build_messages(history, choice, language),
        response_format={
            "type": "json_schema",
            "json_schema": {"name": "story_part", "strict": True, "schema": RESPONSE_SCHEMA},
        },
        temperature=settings.STORY_TEMPERATURE,
    )

    content = response.choices[0].message.content if response.choices else None
    return parse_story_response(content, language)
