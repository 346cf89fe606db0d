import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union

from app.config import MICRONUTRIENTS_PATH
from app.errors import BadRequest

logger = logging.getLogger(__name__)

AGE_GROUPS = {
    "4 to 8": "children_4_8",
    "9 to 13": "children_9_13",
    "14 to 50": "adult_19_50",
    "51 and above": "adult_51_plus",
}
DEFAULT_AGE_KEY = "adult_19_50"

CATEGORIES = {
    "vitamins": ("vitamin", "vitamin-like / essential nutrient"),
    "minerals": ("mineral",),
}

FOOD_GROUPS = {
    "fruit": ["mango", "banana", "citrus", "guava", "amla", "strawberries", "orange juice", "avocado"],
    "vegetable": [
        "spinach", "kale", "broccoli", "leafy greens", "bell peppers", "carrots",
        "sweet potato", "mushrooms", "beets", "leafy vegetables",
    ],
    "meat": ["meat", "fish", "liver", "pork", "poultry", "beef", "shellfish", "seafood", "fatty fish", "red meat"],
}


@lru_cache(maxsize=None)
def _read_dataset(path: str) -> tuple:
    with open(path, "r", encoding="utf-8") as f:
        return tuple(json.load(f))


def load_nutrients(path: Optional[Union[str, Path]] = None) -> List[dict]:
    return list(_read_dataset(str(path or MICRONUTRIENTS_PATH)))


def map_age_group_to_key(age_group):
    return AGE_GROUPS.get(age_group, DEFAULT_AGE_KEY)


def _intake_value(intake, gender: str) -> Optional[str]:
    if isinstance(intake, bool):
        return None
    if isinstance(intake, (int, float)):
        return str(intake)
    if isinstance(intake, str):
        return intake or None
    if isinstance(intake, dict):
        return _intake_value(intake.get(gender.lower()), gender)
    return None


def get_daily_requirements(
    age: str,
    gender: str,
    path: Optional[Union[str, Path]] = None,
) -> Dict[str, Dict[str, str]]:
    """Recommended daily intake per nutrient for an age group and gender.

    Values may be numbers, strings or ``{"male": ..., "female": ...}`` objects
    in the dataset; all are normalised to ``{"value": str, "unit": str}``.
    Nutrients without a usable value for the bucket are left out.
    """
    try:
        nutrients = load_nutrients(path)
    except (OSError, ValueError) as e:
        logger.error("Error reading micronutrients data: %s", e)
        return {}

    age_key = map_age_group_to_key(age)
    requirements = {}
    for nutrient in nutrients:
        value = _intake_value(nutrient.get("recommended_intake", {}).get(age_key), gender)
        if value is None:
            continue
        requirements[nutrient["name"]] = {"value": value, "unit": nutrient.get("unit", "")}
    return requirements


# ---- REFERENCE BROWSING ----
def categorize_food(food: str) -> str:
    lower_food = food.lower()
    for group, keywords in FOOD_GROUPS.items():
        if any(k in lower_food for k in keywords):
            return group
    return "other"


def intake_summary(recommended_intake: dict) -> str:
    """First two distinct intake values across all buckets, e.g. ``"400 - 600"``."""
    values = []
    for intake in recommended_intake.values():
        flat = intake.values() if isinstance(intake, dict) else [intake]
        for v in flat:
            if str(v) not in values:
                values.append(str(v))
    return " - ".join(values[:2])


def list_nutrients(category: Optional[str] = None, path: Optional[Union[str, Path]] = None) -> List[dict]:
    if category is not None and category not in CATEGORIES:
        raise BadRequest(f"Unknown category '{category}'. Use one of: {', '.join(CATEGORIES)}")

    nutrients = load_nutrients(path)
    if category is not None:
        nutrients = [n for n in nutrients if n.get("category") in CATEGORIES[category]]

    return [
        {
            **n,
            "intake_summary": intake_summary(n.get("recommended_intake", {})),
            "sources": [
                {"name": food.title(), "group": categorize_food(food)}
                for food in n.get("found_in", [])
            ],
        }
        for n in nutrients
    ]
