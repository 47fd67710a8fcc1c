import pytest

from pipeline.entitlements import WEBSITE_IMPORT_FEATURE, EntitlementTable

pytestmark = pytest.mark.unit


@pytest.fixture(scope="module")
def table():
    return EntitlementTable.from_yaml()


@pytest.mark.parametrize(
    "tier,allowed",
    [("starter", False), ("pro", False), ("business", True), ("enterprise", True)],
)
def test_website_import_by_tier(table, tier, allowed):
    assert table.is_entitled(tier, WEBSITE_IMPORT_FEATURE) is allowed


@pytest.mark.parametrize("tier", [None, "", "platinum"])
def test_unknown_tier_falls_back_to_starter(table, tier):
    assert table.resolve_tier(tier) == "starter"
    assert table.is_entitled(tier, WEBSITE_IMPORT_FEATURE) is False


def test_minimum_tier(table):
    assert table.minimum_tier_for(WEBSITE_IMPORT_FEATURE) == "business"
    assert table.tier_name("business") == "Business"
    assert table.minimum_tier_for("no_such_feature") is None


def test_from_dict_requires_tiers():
    with pytest.raises(ValueError):
        EntitlementTable.from_dict({"default_tier": "starter"})


def test_from_dict_rejects_undefined_default():
    with pytest.raises(ValueError):
        EntitlementTable.from_dict({"default_tier": "gold", "tiers": {"starter": {"features": {}}}})


def test_missing_file(tmp_path):
    with pytest.raises(ValueError):
        EntitlementTable.from_yaml(str(tmp_path / "missing.yaml"))


def test_custom_table(tmp_path):
    path = tmp_path / "tiers.yaml"
    path.write_text(
        "default_tier: free\n"
        "tiers:\n"
        "  free:\n"
        "    features: {ai_deal_assistant: false}\n"
        "  paid:\n"
        "    features: {ai_deal_assistant: true}\n",
        encoding="utf-8",
    )
    table = EntitlementTable.from_yaml(str(path))
    assert table.is_entitled("paid", WEBSITE_IMPORT_FEATURE)
    assert table.tier_name("paid") == "Paid"
