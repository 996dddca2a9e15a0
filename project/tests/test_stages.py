"""
Stage classifier tests
"""

import pytest

from funnelflow.services.stages import Stage, classify, HOT_STAGES, EARLY_STAGES


class TestClassify:

    @pytest.mark.parametrize("raw", ["awareness", "interest", "intent", "evaluation", "purchase"])
    def test_canonical_values_pass_through(self, raw):
        assert classify(raw) == Stage(raw)
        assert classify(raw).value == raw

    @pytest.mark.parametrize("raw", ["Interest", "PURCHASE", " intent", "intent ", "", "lead", "closed", None, 3, ["intent"]])
    def test_unknown_values_fall_back_to_awareness(self, raw):
        assert classify(raw) is Stage.AWARENESS

    def test_enum_member_is_returned_as_is(self):
        assert classify(Stage.EVALUATION) is Stage.EVALUATION

    def test_stage_groups(self):
        assert HOT_STAGES == {Stage.INTENT, Stage.EVALUATION, Stage.PURCHASE}
        assert EARLY_STAGES == {Stage.AWARENESS, Stage.INTEREST}
        assert [s.value for s in Stage] == ["awareness", "interest", "intent", "evaluation", "purchase"]
