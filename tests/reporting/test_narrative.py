from src.reporting.narrative import build_summary_narrative
from src.survey.dataset import SURVEY_DATA, SimpleDataPoint, SurveyDataset


def test_narrative_on_reference_data():
    text = build_summary_narrative(SURVEY_DATA)

    assert text.startswith(
        "La zone Balbala concentre la plus grande part des répondants "
        "(199 réponses, soit 43,6%)."
    )
    assert "« Courses Hypermarche » (28,0% des réponses)" in text
    assert "« Plusieurs fois/semaine » (47,8%)" in text
    assert "Le rayon préféré des clients est Autres (16,3%)." in text
    assert text.endswith(
        "Au total, 346 clients se déclarent satisfaits ou très satisfaits, "
        "soit 78,1% des avis exprimés."
    )
    # sentences are joined with single spaces, never newlines
    assert "\n" not in text
    assert "  " not in text


def test_narrative_skips_sentences_without_data():
    dataset = SurveyDataset(preferredDepartment=(SimpleDataPoint("Boissons", 5),))
    assert build_summary_narrative(dataset) == "Le rayon préféré des clients est Boissons (100,0%)."


def test_visit_reason_sentence_without_frequency():
    dataset = SurveyDataset(visitReason=(SimpleDataPoint("Cinema", 2),))
    assert build_summary_narrative(dataset) == (
        "Le principal motif de visite est « Cinema » (100,0% des réponses)."
    )


def test_narrative_empty_dataset():
    assert build_summary_narrative(SurveyDataset()) == ""
