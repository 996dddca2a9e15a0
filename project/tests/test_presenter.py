"""
Lead presenter tests: grouping by stage and field normalization
"""

from datetime import datetime, timezone

from funnelflow.schemas.lead import normalize_strategies
from funnelflow.services.presenter import group_by_stage, normalize_lead
from funnelflow.services.stages import Stage


def make_lead(id, stage, **fields):
    return {"id": id, "stage": stage, "company": f"Company {id}", **fields}


class TestNormalizeLead:

    def test_missing_optional_fields_become_empty_strings(self):
        item = normalize_lead({"id": 1, "company": "Acme", "contact": None})
        assert item.contact == ""
        assert item.email == ""
        assert item.phone == ""
        assert item.notes == ""
        assert item.content_strategies == []
        assert item.movement_history == []
        assert item.current_stage is Stage.AWARENESS

    def test_comma_joined_strategies_are_split_and_trimmed(self):
        item = normalize_lead({"id": 1, "content_strategies": " blog, ,webinar ,  case study,"})
        assert item.content_strategies == ["blog", "webinar", "case study"]

    def test_list_strategies_keep_order_and_drop_blanks(self):
        item = normalize_lead({"id": 1, "content_strategies": ["email", "", "  ads  ", None]})
        assert item.content_strategies == ["email", "ads"]

    def test_json_string_strategies(self):
        assert normalize_strategies('["seo", " demo "]') == ["seo", "demo"]

    def test_current_stage_alias_is_accepted(self):
        item = normalize_lead({"id": 1, "currentStage": "intent"})
        assert item.current_stage is Stage.INTENT

    def test_output_uses_camel_case(self):
        created = datetime(2025, 1, 1, tzinfo=timezone.utc)
        item = normalize_lead({"id": 7, "stage": "purchase", "content_strategies": "a,b", "created_at": created})
        data = item.model_dump(by_alias=True)
        assert data["currentStage"] == Stage.PURCHASE
        assert data["contentStrategies"] == ["a", "b"]
        assert data["createdAt"] == created
        assert "current_stage" not in data


class TestGroupByStage:

    def test_always_five_buckets(self):
        grouped = group_by_stage([])
        assert set(grouped.model_dump().keys()) == {"awareness", "interest", "intent", "evaluation", "purchase"}
        assert all(bucket == [] for bucket in grouped.model_dump().values())

    def test_partition_is_lossless(self):
        stages = ["awareness", "interest", "intent", "evaluation", "purchase", "bogus", None, "Interest", "intent"]
        leads = [make_lead(i, stage) for i, stage in enumerate(stages, start=1)]

        grouped = group_by_stage(leads)
        buckets = grouped.model_dump()

        assert sum(len(items) for items in buckets.values()) == len(leads)
        ids = [item["id"] for items in buckets.values() for item in items]
        assert sorted(ids) == [lead["id"] for lead in leads]

    def test_unknown_stage_lands_in_awareness(self):
        grouped = group_by_stage([make_lead(1, "negotiation"), make_lead(2, "Purchase")])
        assert [item.id for item in grouped.awareness] == [1, 2]
        assert grouped.purchase == []

    def test_order_within_bucket_mirrors_input(self):
        leads = [make_lead(3, "intent"), make_lead(1, "interest"), make_lead(2, "intent"), make_lead(5, "intent")]
        grouped = group_by_stage(leads)
        assert [item.id for item in grouped.intent] == [3, 2, 5]
        assert [item.id for item in grouped.interest] == [1]

    def test_grouping_is_deterministic(self):
        leads = [make_lead(i, stage) for i, stage in enumerate(["intent", "awareness", "intent", "purchase"])]
        assert group_by_stage(leads) == group_by_stage(leads)

    def test_input_is_not_mutated(self):
        lead = make_lead(1, "bogus", content_strategies="a,b")
        group_by_stage([lead])
        assert lead == {"id": 1, "stage": "bogus", "company": "Company 1", "content_strategies": "a,b"}
