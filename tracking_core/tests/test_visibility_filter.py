# tracking_core/tests/test_visibility_filter.py

from types import SimpleNamespace

from tracking_core.tracking.visibility import (
    VisibilityQuery,
    build_visibility,
    is_visible,
    is_visible_for,
)


def _item(visibility):
    return SimpleNamespace(visibility=visibility)


RESTRICTED = {"role_ids": ["7", "9"], "role_names": ["cutting-manager"]}


def test_public_item_visible_to_any_role():
    item = _item(None)
    assert is_visible(item)
    assert is_visible(item, role_id="1")
    assert is_visible(item, role_names=["anything"])


def test_matching_single_role_id():
    assert is_visible(_item(RESTRICTED), role_id="7")
    assert is_visible(_item(RESTRICTED), role_id=9)


def test_matching_single_role_name():
    assert is_visible(_item(RESTRICTED), role_name="cutting-manager")


def test_matching_any_of_role_sets():
    assert is_visible(_item(RESTRICTED), role_ids=["1", "9"])
    assert is_visible(_item(RESTRICTED), role_names=["x", "cutting-manager"])


def test_no_intersection_hides_item():
    item = _item(RESTRICTED)
    assert not is_visible(item, role_id="1", role_name="stitcher", role_ids=["2"], role_names=["y"])


def test_restricted_item_hidden_when_no_role_supplied():
    assert not is_visible(_item(RESTRICTED))


def test_ids_and_names_do_not_cross_match():
    # a role name equal to an allowed id must not grant access
    assert not is_visible(_item(RESTRICTED), role_name="7")


def test_dict_items_are_supported():
    assert is_visible({"visibility": None}, role_id="1")
    assert not is_visible({"visibility": RESTRICTED}, role_id="1")


def test_query_from_params():
    query = VisibilityQuery.from_params({"role_id": 7, "role_names": ["a", "", None]})
    assert query.role_id == "7"
    assert query.role_names == ["a"]
    assert not query.is_empty
    assert query.all_ids() == {"7"}
    assert is_visible_for(_item(RESTRICTED), query)


def test_empty_query():
    assert VisibilityQuery.from_params({}).is_empty
    assert VisibilityQuery.from_params({"role_id": "", "role_ids": []}).is_empty


def test_build_visibility():
    assert build_visibility() is None
    assert build_visibility([], []) is None
    assert build_visibility([1, 2], None) == {"role_ids": ["1", "2"], "role_names": []}
