"""
Unit tests for query normalization.

Tests DataQuery parsing, validation, and conversion into driver filter and
options.
"""

import pytest
from bson import ObjectId

from mdb_adapter.database import (DataQuery, NormalizedQuery, normalize_query,
                                  validate_query)
from mdb_adapter.exceptions import InvalidIdentifierError, InvalidQueryError

VALID_ID = "507f1f77bcf86cd799439011"


class TestDataQueryFromDict:
    """Test building DataQuery from host-style mappings."""

    def test_camel_case_aliases(self):
        query = DataQuery.from_dict(
            {
                "fieldsMatching": {"name": "a"},
                "limitResultsTo": "10",
                "startResultsFrom": 5,
                "sortResultsBy": {"name": 1},
                "includeFields": ["name"],
                "expandFields": ["owner"],
                "type": "users",
            }
        )

        assert query == DataQuery(
            match_criteria={"name": "a"},
            limit="10",
            skip=5,
            sort_by={"name": 1},
            include_fields=["name"],
            expand_fields=["owner"],
            collection="users",
        )

    def test_snake_case_names(self):
        query = DataQuery.from_dict({"match_criteria": {}, "sort_by": "name"})
        assert query.match_criteria == {}
        assert query.sort_by == "name"

    def test_unknown_keys_ignored(self):
        query = DataQuery.from_dict({"matchCriteria": {}, "somethingElse": 1})
        assert query == DataQuery(match_criteria={})

    def test_none_raises(self):
        with pytest.raises(InvalidQueryError):
            DataQuery.from_dict(None)

    def test_non_mapping_raises(self):
        with pytest.raises(InvalidQueryError) as exc_info:
            DataQuery.from_dict(["matchCriteria"])
        assert "list" in str(exc_info.value)


class TestValidateQuery:
    """Test presence checks."""

    def test_missing_query(self):
        with pytest.raises(InvalidQueryError):
            validate_query(None)

    def test_missing_match_criteria(self):
        with pytest.raises(InvalidQueryError) as exc_info:
            validate_query(DataQuery(collection="users"))

        assert exc_info.value.kind == "invalid_query"
        assert exc_info.value.context["collection"] == "users"

    def test_non_mapping_match_criteria(self):
        with pytest.raises(InvalidQueryError):
            validate_query(DataQuery(match_criteria="name=a"))

    def test_empty_match_criteria_is_valid(self):
        validate_query(DataQuery(match_criteria={}))


class TestNormalizeQuery:
    """Test conversion into driver filter and options."""

    def test_limit_string_is_coerced(self):
        """Test that a digit-string limit becomes an int."""
        normalized = normalize_query({"matchCriteria": {"name": "a"}, "limitResultsTo": "10"})

        assert normalized.filter == {"name": "a"}
        assert normalized.options == {"limit": 10}

    def test_id_string_is_parsed(self):
        normalized = normalize_query({"matchCriteria": {"_id": VALID_ID}})
        assert normalized.filter == {"_id": ObjectId(VALID_ID)}
        assert isinstance(normalized.filter["_id"], ObjectId)

    def test_id_object_id_passthrough(self):
        oid = ObjectId()
        normalized = normalize_query(DataQuery(match_criteria={"_id": oid}))
        assert normalized.filter["_id"] is oid

    @pytest.mark.parametrize("bad_id", ["notanid", "", 12, None])
    def test_invalid_id_raises(self, bad_id):
        """Test that a malformed _id is rejected rather than matching nothing."""
        with pytest.raises(InvalidIdentifierError):
            normalize_query({"matchCriteria": {"_id": bad_id}})

    def test_id_operator_expression(self):
        """Test that identifier strings inside _id operators are converted."""
        criteria = {"_id": {"$in": [VALID_ID, "507f1f77bcf86cd799439012"]}}

        normalized = normalize_query({"matchCriteria": criteria})

        assert normalized.filter["_id"] == {
            "$in": [ObjectId(VALID_ID), ObjectId("507f1f77bcf86cd799439012")]
        }
        # The caller's criteria are not modified
        assert criteria["_id"]["$in"][0] == VALID_ID

    def test_other_fields_untouched(self):
        """Test that only _id is converted in match criteria."""
        normalized = normalize_query({"matchCriteria": {"owner": VALID_ID}})
        assert normalized.filter == {"owner": VALID_ID}

    def test_filter_is_a_copy(self):
        criteria = {"_id": VALID_ID}
        normalize_query({"matchCriteria": criteria})
        assert criteria == {"_id": VALID_ID}

    def test_missing_match_criteria_raises(self):
        with pytest.raises(InvalidQueryError):
            normalize_query({"limit": 5})

    def test_none_raises(self):
        with pytest.raises(InvalidQueryError):
            normalize_query(None)

    def test_options_only_for_present_fields(self):
        normalized = normalize_query({"matchCriteria": {}})
        assert normalized == NormalizedQuery(filter={}, options={}, populate_paths=None)

    def test_skip(self):
        normalized = normalize_query({"matchCriteria": {}, "skip": "0"})
        assert normalized.options == {"skip": 0}

    @pytest.mark.parametrize(
        "field,value",
        [
            ("limit", "ten"),
            ("limit", 0),
            ("limit", -1),
            ("limit", True),
            ("limit", 2.5),
            ("skip", -3),
            ("skip", "x"),
            ("skip", [1]),
        ],
    )
    def test_malformed_paging_dropped(self, field, value, caplog):
        """Test that malformed limit and skip are dropped with a warning."""
        normalized = normalize_query({"matchCriteria": {}, field: value})

        assert field not in normalized.options
        assert f"Dropping malformed query option '{field}'" in caplog.text

    def test_float_limit_with_integer_value(self):
        normalized = normalize_query({"matchCriteria": {}, "limit": 3.0})
        assert normalized.options["limit"] == 3

    @pytest.mark.parametrize(
        "sort_by,expected",
        [
            ({"name": 1, "created": -1}, [("name", 1), ("created", -1)]),
            ({"name": "asc", "created": "DESC"}, [("name", 1), ("created", -1)]),
            ("name -created", [("name", 1), ("created", -1)]),
            ([("name", "descending")], [("name", -1)]),
        ],
    )
    def test_sort(self, sort_by, expected):
        normalized = normalize_query({"matchCriteria": {}, "sortBy": sort_by})
        assert normalized.options["sort"] == expected

    @pytest.mark.parametrize("sort_by", [{"name": "sideways"}, {"name": True}, 5, [("a",)]])
    def test_malformed_sort_dropped(self, sort_by, caplog):
        normalized = normalize_query({"matchCriteria": {}, "sortBy": sort_by})
        assert "sort" not in normalized.options
        assert "Dropping malformed query option 'sort'" in caplog.text

    @pytest.mark.parametrize(
        "include_fields,expected",
        [
            (["name", "email"], {"name": 1, "email": 1}),
            ("name email", {"name": 1, "email": 1}),
            ({"name": 1, "_id": 0}, {"name": 1, "_id": 0}),
        ],
    )
    def test_projection(self, include_fields, expected):
        normalized = normalize_query({"matchCriteria": {}, "includeFields": include_fields})
        assert normalized.options["projection"] == expected

    def test_expand_fields_joined_in_order(self):
        normalized = normalize_query(
            {"matchCriteria": {}, "expandFields": ["owner", "reviewers"]}
        )
        assert normalized.populate_paths == "owner reviewers"

    def test_empty_expand_fields(self):
        normalized = normalize_query({"matchCriteria": {}, "expandFields": []})
        assert normalized.populate_paths is None

    def test_as_find_kwargs(self):
        normalized = normalize_query(
            {"matchCriteria": {"name": "a"}, "limit": 2, "includeFields": ["name"]}
        )
        assert normalized.as_find_kwargs() == {
            "filter": {"name": "a"},
            "limit": 2,
            "projection": {"name": 1},
        }
