import pytest

from household_budget.services.normalize import normalize_one


class TestNormalizeOne:
    """One-to-one join values collapse to an object or None."""

    def test_none(self):
        assert normalize_one(None) is None

    def test_empty_list(self):
        assert normalize_one([]) is None
        assert normalize_one(()) is None

    def test_single_element_list(self):
        record = {"id": "a"}
        assert normalize_one([record]) is record

    def test_plain_object_passes_through(self):
        record = {"id": "a"}
        assert normalize_one(record) is record

    def test_more_than_one_element_raises(self):
        with pytest.raises(ValueError, match="at most one"):
            normalize_one([{"id": "a"}, {"id": "b"}])
