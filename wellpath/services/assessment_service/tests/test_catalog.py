"""Tests for InstrumentCatalog loading, lookup and validation."""
import json

import pytest

from wellpath.shared.models import Role
from wellpath.shared.utils import configure_pii_salt
from wellpath.services.assessment_service.catalog import (
    InstrumentCatalog,
    find_catalog_problems,
    load_catalog,
    parse_instruments,
)
from wellpath.services.assessment_service.config import (
    INSTRUMENTS_PATH_ENV,
    resolve_instruments_path,
)
from wellpath.services.assessment_service.errors import (
    CatalogConfigurationError,
    InstrumentNotFoundError,
)


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def catalog():
    return load_catalog()


def _document(ranges, scoring_min=0, scoring_max=6, options=None, instrument_id="demo"):
    options = options or [
        {"value": 0, "label": "Never"},
        {"value": 1, "label": "Sometimes"},
        {"value": 2, "label": "Often"},
        {"value": 3, "label": "Always"},
    ]
    return {
        "option_sets": {"freq": options},
        "instruments": [{
            "id": instrument_id,
            "name": "Demo Scale",
            "acronym": "DEMO",
            "description": "Two-item demo",
            "category": "stress",
            "questions": [
                {"id": "d1", "text": "First", "options": "freq"},
                {"id": "d2", "text": "Second", "options": "freq"},
            ],
            "scoring": {"min": scoring_min, "max": scoring_max, "ranges": ranges},
        }],
    }


GOOD_RANGES = [
    {"label": "Low", "min": 0, "max": 2, "interpretation": "Low"},
    {"label": "High", "min": 3, "max": 6, "interpretation": "High"},
]


class TestBundledCatalog:
    def test_loads_all_instruments_in_order(self, catalog):
        ids = [i.id for i in catalog.list()]
        assert ids == ["phq9", "gad7", "pcl5", "asrs", "pss10", "ybocs", "cesd"]

    def test_bundled_catalog_has_no_problems(self, catalog):
        assert find_catalog_problems(catalog.list()) == []

    def test_question_counts(self, catalog):
        counts = {i.id: len(i.questions) for i in catalog.list()}
        assert counts == {
            "phq9": 9,
            "gad7": 7,
            "pcl5": 20,
            "asrs": 6,
            "pss10": 10,
            "ybocs": 10,
            "cesd": 20,
        }

    def test_phq9_ranges(self, catalog):
        labels = [r.label for r in catalog.get("phq9").scoring.ranges]
        assert labels == ["Minimal", "Mild", "Moderate", "Moderately Severe", "Severe"]

    def test_pss10_positive_items_reverse_scored(self, catalog):
        pss = catalog.get("pss10")
        for question in pss.questions:
            never = next(o for o in question.options if o.label == "Never")
            if question.id in ("pss10_4", "pss10_5", "pss10_7", "pss10_8"):
                assert never.value == 4
            else:
                assert never.value == 0

    def test_cesd_reverse_scored_items(self, catalog):
        cesd = catalog.get("cesd")
        reversed_ids = []
        for question in cesd.questions:
            most = next(o for o in question.options if o.label.startswith("Most or all"))
            if most.value == 0:
                reversed_ids.append(question.id)
        assert reversed_ids == ["cesd_4", "cesd_8", "cesd_12", "cesd_16"]


class TestLookup:
    def test_get_returns_instrument(self, catalog):
        gad7 = catalog.get("gad7")
        assert gad7.acronym == "GAD-7"
        assert gad7.scoring.max == 21

    def test_get_unknown_raises(self, catalog):
        with pytest.raises(InstrumentNotFoundError) as exc_info:
            catalog.get("nope")
        assert exc_info.value.instrument_id == "nope"

    def test_contains_and_len(self, catalog):
        assert "phq9" in catalog
        assert "nope" not in catalog
        assert len(catalog) == 7


class TestListVisible:
    def test_clinician_sees_everything(self, catalog):
        visible = catalog.list_visible(Role.CLINICIAN, ["phq9"])
        assert len(visible) == 7

    def test_subject_without_assignments_sees_everything(self, catalog):
        visible = catalog.list_visible(Role.SUBJECT, [])
        assert [s.id for s in visible] == [i.id for i in catalog.list()]

    def test_subject_sees_only_assigned_in_catalog_order(self, catalog):
        visible = catalog.list_visible(Role.SUBJECT, ["cesd", "phq9"])
        assert [s.id for s in visible] == ["phq9", "cesd"]

    def test_unknown_assigned_ids_ignored(self, catalog):
        visible = catalog.list_visible(Role.SUBJECT, ["gad7", "retired_scale"])
        assert [s.id for s in visible] == ["gad7"]

    def test_summary_fields(self, catalog):
        summary = catalog.list_visible(Role.SUBJECT, ["phq9"])[0]
        data = summary.to_dict()
        assert data["id"] == "phq9"
        assert data["acronym"] == "PHQ-9"
        assert data["category"] == "depression"
        assert data["question_count"] == 9


class TestValidation:
    def test_valid_document_loads(self):
        catalog = InstrumentCatalog.from_dict(_document(GOOD_RANGES))
        assert catalog.get("demo").achievable_max == 6

    def test_gap_in_ranges(self):
        ranges = [
            {"label": "Low", "min": 0, "max": 2, "interpretation": "Low"},
            {"label": "High", "min": 4, "max": 6, "interpretation": "High"},
        ]
        problems = find_catalog_problems(parse_instruments(_document(ranges)))
        assert any("gap" in p for p in problems)

    def test_overlapping_ranges(self):
        ranges = [
            {"label": "Low", "min": 0, "max": 3, "interpretation": "Low"},
            {"label": "High", "min": 3, "max": 6, "interpretation": "High"},
        ]
        problems = find_catalog_problems(parse_instruments(_document(ranges)))
        assert any("overlaps" in p for p in problems)

    def test_ranges_not_reaching_max(self):
        ranges = [{"label": "Low", "min": 0, "max": 4, "interpretation": "Low"}]
        problems = find_catalog_problems(parse_instruments(_document(ranges)))
        assert any("ranges end at 4" in p for p in problems)

    def test_achievable_total_beyond_bounds(self):
        ranges = [{"label": "All", "min": 0, "max": 4, "interpretation": "All"}]
        problems = find_catalog_problems(
            parse_instruments(_document(ranges, scoring_max=4))
        )
        assert any("achievable scores 0-6" in p for p in problems)

    def test_non_integer_option_value(self):
        options = [{"value": 0.5, "label": "Half"}, {"value": 1, "label": "One"}]
        ranges = [{"label": "All", "min": 0, "max": 2, "interpretation": "All"}]
        problems = find_catalog_problems(
            parse_instruments(_document(ranges, scoring_max=2, options=options))
        )
        assert any("non-integer" in p for p in problems)

    def test_duplicate_instrument_ids(self):
        doc = _document(GOOD_RANGES)
        doc["instruments"].append(dict(doc["instruments"][0]))
        problems = find_catalog_problems(parse_instruments(doc))
        assert "demo: duplicate instrument id" in problems

    def test_invalid_catalog_refused(self):
        ranges = [{"label": "Low", "min": 0, "max": 4, "interpretation": "Low"}]
        with pytest.raises(CatalogConfigurationError):
            InstrumentCatalog.from_dict(_document(ranges))

    def test_unknown_option_set(self):
        doc = _document(GOOD_RANGES)
        doc["instruments"][0]["questions"][0]["options"] = "missing_set"
        with pytest.raises(CatalogConfigurationError):
            parse_instruments(doc)

    def test_unknown_category(self):
        doc = _document(GOOD_RANGES)
        doc["instruments"][0]["category"] = "astrology"
        with pytest.raises(CatalogConfigurationError):
            parse_instruments(doc)

    def test_missing_instruments_list(self):
        with pytest.raises(CatalogConfigurationError):
            parse_instruments({"option_sets": {}})


class TestLoadFromFile:
    def test_load_from_explicit_path(self, tmp_path):
        path = tmp_path / "instruments.json"
        path.write_text(json.dumps(_document(GOOD_RANGES)))

        catalog = load_catalog(str(path))
        assert [i.id for i in catalog.list()] == ["demo"]

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps(_document(GOOD_RANGES)))
        monkeypatch.setenv(INSTRUMENTS_PATH_ENV, str(path))

        assert str(resolve_instruments_path()) == str(path)
        assert "demo" in load_catalog()

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogConfigurationError):
            load_catalog(str(tmp_path / "absent.json"))

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(CatalogConfigurationError):
            load_catalog(str(path))
