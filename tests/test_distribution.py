import pytest

from memberdash.accessor import SafeAccessor
from memberdash.distribution import DistributionCalculator, percentage
from memberdash.errors import StorageFailure
from memberdash.levels import LevelRuleSource


def _calculator(store) -> DistributionCalculator:
    return DistributionCalculator(SafeAccessor(store), LevelRuleSource(store))


def test_percentage_basic() -> None:
    assert percentage(4, 10) == 40.0
    assert percentage(1, 3) == 33.33
    assert percentage(2, 3) == 66.67
    assert percentage(0, 10) == 0.0


def test_percentage_zero_total_is_zero() -> None:
    assert percentage(0, 0) == 0.0
    assert percentage(3, 0) == 0.0


def test_percentage_never_exceeds_hundred() -> None:
    assert percentage(5, 4) == 100.0
    assert percentage(10, 10) == 100.0


@pytest.mark.asyncio
async def test_distribution_two_levels(store) -> None:
    await store.collection("level_rules").add_many(
        [
            {"levelId": "A", "name": "Bronze", "isActive": True},
            {"levelId": "B", "name": "Silver", "isActive": True},
            {"levelId": "C", "name": "Gold", "isActive": False},
        ]
    )
    await store.collection("users").add_many(
        [{"levelId": "A"}] * 4 + [{"levelId": "B"}] * 6
    )

    shares = await _calculator(store).distribution()

    assert [s.as_dict() for s in shares] == [
        {"levelId": "A", "levelName": "Bronze", "count": 4, "percentage": 40.0},
        {"levelId": "B", "levelName": "Silver", "count": 6, "percentage": 60.0},
    ]


@pytest.mark.asyncio
async def test_distribution_follows_rule_order(store) -> None:
    await store.collection("level_rules").add_many(
        [
            {"levelId": "B", "name": "Silver", "isActive": True},
            {"levelId": "A", "name": "Bronze", "isActive": True},
        ]
    )
    await store.collection("users").add_many([{"levelId": "A"}, {"levelId": "B"}, {"levelId": "B"}])

    shares = await _calculator(store).distribution()

    assert [(s.level_id, s.count, s.percentage) for s in shares] == [
        ("B", 2, 66.67),
        ("A", 1, 33.33),
    ]


@pytest.mark.asyncio
async def test_distribution_without_members_is_zero_percent(store) -> None:
    await store.collection("level_rules").add({"levelId": "A", "name": "Bronze", "isActive": True})

    shares = await _calculator(store).distribution()

    assert len(shares) == 1
    assert shares[0].count == 0
    assert shares[0].percentage == 0.0


@pytest.mark.asyncio
async def test_distribution_without_level_rules_is_empty(store) -> None:
    await store.collection("users").add_many([{"levelId": "A"}, {"levelId": "B"}])
    assert await _calculator(store).distribution() == []


@pytest.mark.asyncio
async def test_distribution_propagates_level_rule_failure(store, failing_store) -> None:
    broken = failing_store(level_rules=StorageFailure("level_rules", "permission denied"))
    calc = DistributionCalculator(SafeAccessor(broken), LevelRuleSource(broken))

    with pytest.raises(StorageFailure):
        await calc.distribution()


@pytest.mark.asyncio
async def test_level_rule_source_skips_rules_without_id(store) -> None:
    await store.collection("level_rules").add_many(
        [
            {"name": "orphan", "isActive": True},
            {"levelId": 3, "isActive": True},
        ]
    )

    rules = await LevelRuleSource(store).list_active_level_rules()

    assert len(rules) == 1
    assert rules[0].level_id == 3
    assert rules[0].name == "3"
