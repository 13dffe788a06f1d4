import pytest

from addon_manifest.assets import (
    choose_volume_group,
    find_volume_groups,
    pick_single_asset,
    resolve_assets,
)
from addon_manifest.models import AssetRecord

pytestmark = [pytest.mark.unit, pytest.mark.manifest]

PRIORITY = (".7z", ".zip")


def _asset(name, size=1):
    return AssetRecord(name=name, size=size, download_url=f"https://dl/{name}")


class TestFindVolumeGroups:
    def test_groups_and_orders_parts(self):
        assets = [
            _asset("pack.7z.003", 30),
            _asset("readme.txt"),
            _asset("pack.7z.001", 10),
            _asset("pack.7z.002", 20),
        ]

        (group,) = find_volume_groups(assets)

        assert group.base_name == "pack.7z"
        assert [p.name for p in group.parts] == [
            "pack.7z.001",
            "pack.7z.002",
            "pack.7z.003",
        ]
        assert group.total_size == 60

    def test_orders_numerically_not_lexically(self):
        assets = [_asset("big.zip.1000"), _asset("big.zip.999")]
        (group,) = find_volume_groups(assets)
        assert [p.name for p in group.parts] == ["big.zip.999", "big.zip.1000"]

    @pytest.mark.parametrize(
        "name", ["pack.7z", "pack.7z.01", "pack.001", "pack.tar.001", "pack.7z.001.bak"]
    )
    def test_non_volume_names_ignored(self, name):
        assert find_volume_groups([_asset(name)]) == []

    def test_case_insensitive_extension(self):
        (group,) = find_volume_groups([_asset("Pack.7Z.001"), _asset("Pack.7Z.002")])
        assert len(group.parts) == 2


class TestChooseVolumeGroup:
    def test_preference_token_wins(self):
        groups = find_volume_groups(
            [
                _asset("other.7z.001"),
                _asset("other.7z.002"),
                _asset("other.7z.003"),
                _asset("SeoulMap_1.4.0.7z.001"),
            ]
        )
        chosen = choose_volume_group(groups, "seoulmap_1.4.0")
        assert chosen.base_name == "SeoulMap_1.4.0.7z"

    def test_single_group_used_without_preference_match(self):
        groups = find_volume_groups([_asset("pack.7z.001")])
        assert choose_volume_group(groups, "nomatch").base_name == "pack.7z"

    def test_most_parts_then_size_then_name(self):
        groups = find_volume_groups(
            [
                _asset("a.7z.001", 5),
                _asset("a.7z.002", 5),
                _asset("b.7z.001", 50),
                _asset("b.7z.002", 50),
                _asset("c.7z.001", 500),
            ]
        )
        assert choose_volume_group(groups).base_name == "b.7z"

        tied = find_volume_groups([_asset("z.7z.001", 5), _asset("y.7z.001", 5)])
        assert choose_volume_group(tied).base_name == "y.7z"

    def test_no_groups(self):
        assert choose_volume_group([]) is None


class TestPickSingleAsset:
    def test_priority_order(self):
        assets = [_asset("readme.txt"), _asset("addon.zip"), _asset("addon.7z")]
        assert pick_single_asset(assets, PRIORITY).name == "addon.7z"

    def test_falls_back_through_priority(self):
        assets = [_asset("readme.txt"), _asset("addon.zip")]
        assert pick_single_asset(assets, PRIORITY).name == "addon.zip"

    def test_case_insensitive(self):
        assert pick_single_asset([_asset("ADDON.ZIP")], PRIORITY).name == "ADDON.ZIP"

    def test_first_asset_when_nothing_matches(self):
        assets = [_asset("setup.exe"), _asset("readme.txt")]
        assert pick_single_asset(assets, PRIORITY).name == "setup.exe"

    def test_no_assets(self):
        assert pick_single_asset([], PRIORITY) is None


class TestResolveAssets:
    def test_multi_volume_mode(self, make_release):
        release = make_release(
            "pack-v1.0",
            assets=[
                ("pack.7z.002", 2),
                ("pack.7z.001", 1),
                ("pack.7z.003", 3),
                ("pack-lite.zip", 9),
            ],
        )

        resolved = resolve_assets(release, PRIORITY, "pack_1.0")

        assert resolved.multi_volume is True
        assert [a.file_name for a in resolved.artifacts] == [
            "pack.7z.001",
            "pack.7z.002",
            "pack.7z.003",
        ]
        assert resolved.total_size == 6
        assert resolved.primary.file_name == "pack.7z.001"

    def test_single_asset_mode(self, make_release):
        release = make_release(
            "addon-v1.0", assets=[("readme.txt", 1), ("addon.zip", 1_572_864)]
        )

        resolved = resolve_assets(release, PRIORITY)

        assert resolved.multi_volume is False
        assert resolved.primary.file_name == "addon.zip"
        assert resolved.total_size == 1_572_864

    def test_snapshot_fallback(self, make_release):
        release = make_release("addon-v1.0")

        resolved = resolve_assets(release, PRIORITY)

        assert resolved.primary.file_name == "addon-v1.0.zip"
        assert resolved.primary.download_url.endswith("/zipball/addon-v1.0")
        assert resolved.total_size == 0

    def test_nothing_downloadable(self, make_release):
        release = make_release("addon-v1.0", zipball_url=None)
        assert resolve_assets(release, PRIORITY) is None
