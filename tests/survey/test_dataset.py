import pytest

from src.exceptions import DatasetValidationError
from src.survey.dataset import (
    COMPARISON_SERIES_KEY,
    DATASET_KEYS,
    SIMPLE_SERIES_KEYS,
    SURVEY_DATA,
    ComparisonDataPoint,
    SimpleDataPoint,
    SurveyDataset,
)
from src.survey.questions import QUESTION_CONFIG_MAP, QUESTION_MAPPINGS, get_question


def test_dataset_has_eleven_series():
    assert len(DATASET_KEYS) == 11
    assert COMPARISON_SERIES_KEY not in SIMPLE_SERIES_KEYS
    assert len(SIMPLE_SERIES_KEYS) == 10


def test_reference_data_loaded():
    satisfaction = SURVEY_DATA.series("satisfaction")
    assert [p.name for p in satisfaction] == [
        "Pas du tout",
        "Moyennement",
        "Satisfait",
        "Très satisfait",
    ]
    prix = SURVEY_DATA.series("experienceChanges")[0]
    assert prix == ComparisonDataPoint("Prix", 38, 45, "+ Cher", "- Cher")
    assert prix.total == 83


def test_series_unknown_key_is_empty():
    assert SURVEY_DATA.series("unknown") == ()
    assert SurveyDataset().series("zones") == ()


def test_from_dict_missing_series_become_empty():
    dataset = SurveyDataset.from_dict({"zones": [{"name": "A", "value": 3}], "extra": []})
    assert dataset.zones == (SimpleDataPoint("A", 3),)
    assert dataset.satisfaction == ()
    assert dataset.experienceChanges == ()


def test_to_dict_uses_camel_case_keys():
    payload = SURVEY_DATA.to_dict()
    assert set(payload) == set(DATASET_KEYS)
    assert payload["experienceChanges"][1] == {
        "category": "Choix",
        "positive": 35,
        "negative": 20,
        "labelPositive": "+ De Choix",
        "labelNegative": "- De Choix",
    }
    assert SurveyDataset.from_dict(payload) == SURVEY_DATA


def test_whole_float_counts_accepted():
    dataset = SurveyDataset.from_dict({"zones": [{"name": "A", "value": 4.0}]})
    assert dataset.zones[0].value == 4


@pytest.mark.parametrize("bad_value", [-1, 2.5, "12", True, None])
def test_invalid_counts_rejected(bad_value):
    with pytest.raises(DatasetValidationError) as exc_info:
        SurveyDataset.from_dict({"zones": [{"name": "A", "value": 1}, {"name": "B", "value": bad_value}]})
    assert exc_info.value.field == "zones[1]"


def test_non_mapping_item_rejected():
    with pytest.raises(DatasetValidationError):
        SurveyDataset.from_dict({"experienceChanges": ["Prix"]})


def test_dataset_is_immutable():
    with pytest.raises(Exception):
        SURVEY_DATA.zones = ()  # type: ignore[misc]


def test_question_registry_covers_every_series():
    assert [m.id for m in QUESTION_MAPPINGS] == [f"Q{n}" for n in range(11)]
    assert {m.dataset_key for m in QUESTION_MAPPINGS} == set(DATASET_KEYS)
    for mapping in QUESTION_MAPPINGS:
        assert mapping.chart_key == mapping.dataset_key


def test_get_question_is_case_insensitive():
    assert get_question("q8").dataset_key == "preferredDepartment"
    assert get_question(" Q10 ").dataset_key == "experienceChanges"
    assert get_question("Q11") is None
    assert get_question(None) is None
    assert QUESTION_CONFIG_MAP["Q3"].text == "Fréquence de visite"
