"""
Unit Tests: Profile Classification

Tests for the regular/enhancement partition, chain ordering and chain edits.
"""

import pytest

from profilesync.core.profiles.classifier import (
    activate_in_chain,
    classify_profiles,
    deactivate_in_chain,
    move_to_end,
    move_to_top,
)
from profilesync.core.profiles.models import ProfileKind, ProfileSet


def uids(items):
    return [item.uid for item in items]


class TestClassification:
    """Test classify_profiles()."""

    @pytest.mark.unit
    def test_partition_covers_all_items(self, mixed_set):
        result = classify_profiles(mixed_set)

        regular = set(uids(result.regular))
        enhanced = set(uids(result.enhanced))

        assert regular | enhanced == set(mixed_set.uids)
        assert regular & enhanced == set()

    @pytest.mark.unit
    def test_regular_items_keep_source_order(self, mixed_set):
        result = classify_profiles(mixed_set)

        assert uids(result.regular) == ["local1", "remote1"]
        assert all(item.kind is ProfileKind.REGULAR for item in result.regular)

    @pytest.mark.unit
    def test_chain_order_first_then_unchained(self, mixed_set):
        result = classify_profiles(mixed_set)

        # "gone" is not in the set and is dropped silently
        assert uids(result.enhanced) == ["script1", "merge1", "merge2"]

    @pytest.mark.unit
    def test_duplicate_chain_entries_listed_once(self, profile_factory):
        profile_set = ProfileSet(
            chain=["m1", "m1", "s1"],
            items=[profile_factory("s1", type="script"), profile_factory("m1", type="merge")],
        )

        result = classify_profiles(profile_set)

        assert uids(result.enhanced) == ["m1", "s1"]

    @pytest.mark.unit
    def test_chain_referencing_regular_profile_is_ignored(self, profile_factory):
        profile_set = ProfileSet(
            chain=["l1", "m1"],
            items=[profile_factory("l1"), profile_factory("m1", type="merge")],
        )

        result = classify_profiles(profile_set)

        assert uids(result.regular) == ["l1"]
        assert uids(result.enhanced) == ["m1"]

    @pytest.mark.unit
    def test_empty_set(self):
        result = classify_profiles(ProfileSet())

        assert result.regular == []
        assert result.enhanced == []


class TestChainEditing:
    """Test chain edit helpers."""

    @pytest.mark.unit
    def test_activate_appends_once(self):
        assert activate_in_chain(["a"], "b") == ["a", "b"]
        assert activate_in_chain(["a", "b"], "a") == ["a", "b"]

    @pytest.mark.unit
    def test_deactivate_removes(self):
        assert deactivate_in_chain(["a", "b", "c"], "b") == ["a", "c"]
        assert deactivate_in_chain(["a"], "x") == ["a"]

    @pytest.mark.unit
    def test_move_to_top_and_end(self):
        assert move_to_top(["a", "b", "c"], "c") == ["c", "a", "b"]
        assert move_to_end(["a", "b", "c"], "a") == ["b", "c", "a"]

    @pytest.mark.unit
    def test_moving_inactive_uid_leaves_chain(self):
        assert move_to_top(["a", "b"], "x") == ["a", "b"]
        assert move_to_end(["a", "b"], "x") == ["a", "b"]
