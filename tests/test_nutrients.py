import json

import pytest

from app.errors import BadRequest
from app.nutrients import (
    categorize_food,
    get_daily_requirements,
    intake_summary,
    list_nutrients,
    load_nutrients,
    map_age_group_to_key,
)


@pytest.fixture
def dataset(tmp_path):
    path = tmp_path / "micronutrients.json"
    path.write_text(json.dumps([
        {"name": "Vitamin C", "category": "vitamin", "unit": "mg",
         "recommended_intake": {"adult_19_50": {"male": 90, "female": 75}}, "found_in": ["guava"]},
        {"name": "Folate", "category": "vitamin", "unit": "mcg",
         "recommended_intake": {"adult_19_50": 400}, "found_in": []},
        {"name": "Vitamin D", "category": "vitamin", "unit": "IU",
         "recommended_intake": {"adult_19_50": "600-800"}, "found_in": []},
        {"name": "Chromium", "category": "mineral", "unit": "mcg",
         "recommended_intake": {"children_4_8": 15}, "found_in": []},
        {"name": "Iron", "category": "mineral", "unit": "mg",
         "recommended_intake": {"adult_19_50": {"male": 8}}, "found_in": []},
        {"name": "Boron", "category": "mineral", "unit": "mg",
         "recommended_intake": {"adult_19_50": None}, "found_in": []},
    ]))
    return path


@pytest.mark.parametrize("label,key", [
    ("4 to 8", "children_4_8"),
    ("9 to 13", "children_9_13"),
    ("14 to 50", "adult_19_50"),
    ("51 and above", "adult_51_plus"),
    ("", "adult_19_50"),
    ("ninety", "adult_19_50"),
])
def test_map_age_group_to_key(label, key):
    assert map_age_group_to_key(label) == key


def test_requirements_normalise_values(dataset):
    assert get_daily_requirements("14 to 50", "Female", dataset) == {
        "Vitamin C": {"value": "75", "unit": "mg"},
        "Folate": {"value": "400", "unit": "mcg"},
        "Vitamin D": {"value": "600-800", "unit": "IU"},
    }


def test_requirements_omit_missing_bucket_and_gender(dataset):
    requirements = get_daily_requirements("14 to 50", "Male", dataset)

    assert requirements["Iron"] == {"value": "8", "unit": "mg"}
    assert requirements["Vitamin C"] == {"value": "90", "unit": "mg"}
    assert "Chromium" not in requirements
    assert "Boron" not in requirements


def test_requirements_for_bundled_dataset():
    nutrients = load_nutrients()
    requirements = get_daily_requirements("14 to 50", "Female")

    expected = {
        n["name"] for n in nutrients
        if "adult_19_50" in n["recommended_intake"]
        and (not isinstance(n["recommended_intake"]["adult_19_50"], dict)
             or "female" in n["recommended_intake"]["adult_19_50"])
    }
    assert requirements
    assert set(requirements) == expected
    assert requirements["Iron"] == {"value": "18", "unit": "mg"}
    assert "Chromium" not in requirements


def test_unreadable_dataset_gives_empty_requirements(tmp_path):
    assert get_daily_requirements("14 to 50", "Female", tmp_path / "missing.json") == {}

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert get_daily_requirements("14 to 50", "Female", broken) == {}


@pytest.mark.parametrize("food,group", [
    ("Guava", "fruit"),
    ("orange juice", "fruit"),
    ("leafy greens", "vegetable"),
    ("fatty fish", "meat"),
    ("red meat", "meat"),
    ("lentils", "other"),
])
def test_categorize_food(food, group):
    assert categorize_food(food) == group


def test_intake_summary_takes_first_two_distinct_values():
    assert intake_summary({"a": 400, "b": 400, "c": {"male": 900, "female": 700}}) == "400 - 900"
    assert intake_summary({"a": "600-800"}) == "600-800"
    assert intake_summary({}) == ""


def test_list_nutrients_by_category(dataset):
    vitamins = list_nutrients("vitamins", dataset)
    minerals = list_nutrients("minerals", dataset)

    assert [n["name"] for n in vitamins] == ["Vitamin C", "Folate", "Vitamin D"]
    assert [n["name"] for n in minerals] == ["Chromium", "Iron", "Boron"]
    assert len(list_nutrients(None, dataset)) == 6
    assert vitamins[0]["sources"] == [{"name": "Guava", "group": "fruit"}]
    assert vitamins[0]["intake_summary"] == "90 - 75"


def test_vitamin_like_nutrients_listed_with_vitamins():
    names = [n["name"] for n in list_nutrients("vitamins")]
    assert "Choline" in names
    assert "Iron" not in names


def test_list_nutrients_unknown_category(dataset):
    with pytest.raises(BadRequest):
        list_nutrients("sugars", dataset)
