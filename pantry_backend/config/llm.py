"""Defaults for the recipe and vision LLM calls that are tracked in Git."""

# Model versions used by default. Can be overridden via env if needed.
DEFAULT_VISION_MODEL = "gpt-4o-mini"
DEFAULT_RECIPE_MODEL = "gpt-4o-mini"

# Short answers are all we need from either model.
DEFAULT_VISION_MAX_OUTPUT_TOKENS = 50
DEFAULT_RECIPE_MAX_OUTPUT_TOKENS = 150

VISION_PROMPT = (
    "I want you to tell me what is in this image and how many of that thing "
    "are there. Provide the output in the format: type,quantity."
)

RECIPE_PROMPT_TEMPLATE = (
    "Here is a list of pantry items and their quantities: {pantry_items}. "
    "Please generate a simple and tasty recipe that can be made using some "
    "of these ingredients. The recipe doesn't need to include all the items "
    "from the pantry.\n"
)
