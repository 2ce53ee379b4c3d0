"""Prompt templates for recipe suggestions.

Provides a factory function that turns the user's ingredient list and matching
mode into a single natural-language prompt. The prompt pins the exact JSON
envelope the suggestion client parses (see SuggestionEnvelope).
Templates exist in English and French.
"""

from typing import Sequence

from chef_assistant.models.models import MatchingMode


MODE_INSTRUCTIONS = {
    "en": {
        MatchingMode.EXACT: "using only these ingredients",
        MatchingMode.FEW: "using these ingredients plus 1-2 additional ingredients at most",
        MatchingMode.FLEXIBLE: "using at least half of these ingredients",
    },
    "fr": {
        MatchingMode.EXACT: "uniquement avec ces ingrédients",
        MatchingMode.FEW: "avec ces ingrédients plus 1-2 ingrédients supplémentaires maximum",
        MatchingMode.FLEXIBLE: "utilisant au moins la moitié de ces ingrédients",
    },
}


_FORMAT_EXAMPLE = {
    "en": """{{
  "recipes": [
    {{
      "name": "Recipe name",
      "description": "Short, appetizing description",
      "ingredients": ["ingredient 1", "ingredient 2"],
      "instructions": ["step 1", "step 2", "step 3"],
      "cookingTime": "20 minutes",
      "servings": 4,
      "difficulty": "Easy",
      "matchScore": 90
    }}
  ]
}}""",
    "fr": """{{
  "recipes": [
    {{
      "name": "Nom de la recette",
      "description": "Description courte et appétissante",
      "ingredients": ["ingrédient 1", "ingrédient 2"],
      "instructions": ["étape 1", "étape 2", "étape 3"],
      "cookingTime": "20 minutes",
      "servings": 4,
      "difficulty": "Facile",
      "matchScore": 90
    }}
  ]
}}""",
}


_TEMPLATES = {
    "en": """You are an expert chef. The user has the following ingredients: {items}.

Suggest {count} recipes {mode_text}. Reply ONLY with a valid JSON object in this exact format:

{example}

IMPORTANT: Your reply must be ONLY this JSON, with no text before or after it. Do not start with ```json and do not end with ```.""",
    "fr": """Tu es un chef cuisinier expert. L'utilisateur a les ingrédients suivants : {items}.

Propose-moi {count} recettes {mode_text}. Pour chaque recette, réponds UNIQUEMENT avec un objet JSON valide dans ce format exact :

{example}

IMPORTANT : Ta réponse doit être UNIQUEMENT ce JSON, sans aucun texte avant ou après. Ne commence pas par ```json et ne termine pas par ```.""",
}


def get_mode_instruction(mode: MatchingMode | str, language: str = "en") -> str:
    """Return the prompt fragment describing how strictly to use the ingredients.

    Args:
        mode: Matching mode (enum member or its string value).
        language: Prompt language ("en" or "fr").

    Raises:
        ValueError: If the language or mode is unknown.
    """
    if language not in MODE_INSTRUCTIONS:
        raise ValueError(f"Unsupported prompt language: {language}")
    return MODE_INSTRUCTIONS[language][MatchingMode(mode)]


def build_suggestion_prompt(
    items: Sequence[str],
    mode: MatchingMode | str = MatchingMode.EXACT,
    count: int = 3,
    language: str = "en",
) -> str:
    """Build the recipe suggestion prompt.

    Args:
        items: Normalized ingredient names, embedded comma-separated.
        mode: Matching mode controlling the ingredient constraint.
        count: Number of recipes to ask for.
        language: Prompt language ("en" or "fr").

    Returns:
        str: Prompt text asking for a JSON-only reply.
    """
    mode_text = get_mode_instruction(mode, language)
    return _TEMPLATES[language].format(
        items=", ".join(items),
        count=count,
        mode_text=mode_text,
        example=_FORMAT_EXAMPLE[language].format(),
    )
