"""
Unit Tests: Profile and Runtime Models
"""

import pytest
from pydantic import ValidationError

from profilesync.core.profiles.models import (
    ProfileItem,
    ProfileKind,
    ProfileSet,
    ProfileType,
    SelectedProxy,
)
from profilesync.core.runtime.models import ProxyGroupState, ProxySnapshot


class TestProfileModels:
    """Test profile parsing and immutable updates."""

    @pytest.mark.unit
    def test_parse_wire_payload(self):
        profile_set = ProfileSet.model_validate({
            "current": "p1",
            "chain": None,
            "items": [
                {"uid": "p1", "type": "remote", "selected": [{"name": "A", "now": "n1"}]},
                {"uid": "m1", "type": "merge", "selected": None},
            ],
        })

        assert profile_set.chain == []
        assert profile_set.get("p1").selected == [SelectedProxy(group_name="A", node_name="n1")]
        assert profile_set.get("m1").selected == []
        assert profile_set.get("m1").kind is ProfileKind.ENHANCEMENT

    @pytest.mark.unit
    def test_blank_current_is_unset(self):
        assert ProfileSet(current="  ").current is None

    @pytest.mark.unit
    def test_duplicate_uids_rejected(self):
        with pytest.raises(ValidationError):
            ProfileSet(items=[
                {"uid": "p1", "type": "local"},
                {"uid": "p1", "type": "remote"},
            ])

    @pytest.mark.unit
    def test_duplicate_groups_keep_first(self):
        item = ProfileItem(uid="p1", type=ProfileType.LOCAL, selected=[
            {"name": "A", "now": "n1"},
            {"name": "A", "now": "n2"},
        ])

        assert item.selected == [SelectedProxy(group_name="A", node_name="n1")]

    @pytest.mark.unit
    def test_selected_dumps_with_wire_names(self):
        entry = SelectedProxy(group_name="A", node_name="n1")

        assert entry.model_dump(by_alias=True) == {"name": "A", "now": "n1"}

    @pytest.mark.unit
    def test_with_helpers_return_new_instances(self):
        profile_set = ProfileSet(items=[{"uid": "p1", "type": "local"}])

        updated = profile_set.with_current("p1").with_chain(["m1"])

        assert profile_set.current is None
        assert updated.current == "p1"
        assert updated.chain == ["m1"]

    @pytest.mark.unit
    def test_current_item_requires_regular(self):
        profile_set = ProfileSet(current="m1", items=[{"uid": "m1", "type": "script"}])

        assert profile_set.current_item() is None


class TestProxySnapshot:
    """Test snapshot ordering."""

    @pytest.mark.unit
    def test_global_group_first(self):
        snapshot = ProxySnapshot(
            global_group=ProxyGroupState(name="GLOBAL", now="A", all=["A"]),
            groups=[ProxyGroupState(name="A", now="n1", all=["n1"])],
        )

        assert [group.name for group in snapshot.all_groups()] == ["GLOBAL", "A"]
        assert snapshot.selection() == {"GLOBAL": "A", "A": "n1"}

    @pytest.mark.unit
    def test_missing_now_is_empty(self):
        assert ProxyGroupState(name="A", now=None).now == ""
