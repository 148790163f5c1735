"""QuestionGraph tests — ordering, lookup, entry question and runnability."""

import pytest

from assessment_engine.errors import AssessmentUnavailableError
from assessment_engine.models.graph import Answer, AssessmentConfig, GateBehavior, ScoringMethod

from conftest import make_answer, make_graph, make_question


class TestOrdering:
    """Questions and answers are ordered by ``order`` with ids breaking ties."""

    def test_questions_sorted_by_order(self):
        graph = make_graph(
            [make_question("Q3", 3), make_question("Q1", 1), make_question("Q2", 2)],
            [],
        )
        assert [q.id for q in graph.sorted_questions()] == ["Q1", "Q2", "Q3"]

    def test_order_ties_broken_by_id(self):
        graph = make_graph(
            [make_question("b", 1), make_question("a", 1), make_question("c", 0)],
            [],
        )
        assert [q.id for q in graph.sorted_questions()] == ["c", "a", "b"]

    def test_answers_for_sorted_and_grouped(self):
        graph = make_graph(
            [make_question("Q1", 1), make_question("Q2", 2)],
            [
                make_answer("A2", "Q1", 2),
                make_answer("B1", "Q2", 1),
                make_answer("A1", "Q1", 1),
            ],
        )
        assert [a.id for a in graph.answers_for("Q1")] == ["A1", "A2"]
        assert [a.id for a in graph.answers_for("Q2")] == ["B1"]
        assert graph.answers_for("missing") == []

    def test_position(self, linear_graph):
        assert linear_graph.position("Q1") == 0
        assert linear_graph.position("Q3") == 2
        assert linear_graph.position("nope") is None


class TestEntryQuestion:
    """The configured entry question wins; otherwise the first sorted question."""

    def test_defaults_to_first_question(self, linear_graph):
        assert linear_graph.entry_question_id == "Q1"

    def test_configured_entry(self):
        graph = make_graph(
            [make_question("Q1", 1), make_question("Q2", 2)], [],
            entry_question_id="Q2",
        )
        assert graph.entry_question_id == "Q2"

    def test_dangling_entry_falls_back_to_first(self):
        graph = make_graph(
            [make_question("Q1", 1), make_question("Q2", 2)], [],
            entry_question_id="gone",
        )
        assert graph.entry_question_id == "Q1"

    def test_empty_graph_has_no_entry(self):
        assert make_graph([], []).entry_question_id is None


class TestRunnable:
    def test_empty_graph_not_runnable(self):
        graph = make_graph([], [])
        assert not graph.is_runnable
        with pytest.raises(AssessmentUnavailableError):
            graph.ensure_runnable()

    def test_unavailable_error_is_value_error(self):
        assert issubclass(AssessmentUnavailableError, ValueError)

    def test_non_empty_graph_runnable(self, linear_graph):
        linear_graph.ensure_runnable()
        assert len(linear_graph) == 3


class TestConfigParsing:
    """Wire-format configs and legacy scoring labels."""

    def test_camel_case_wire_fields(self):
        config = AssessmentConfig.model_validate({
            "id": "c1",
            "slug": "s",
            "scoringMethod": "points",
            "gateBehavior": "PRE_GATED",
            "entryQuestionId": "q1",
        })
        assert config.scoring_method == ScoringMethod.POINTS
        assert config.gate_behavior == GateBehavior.PRE_GATED
        assert config.entry_question_id == "q1"

    @pytest.mark.parametrize("label,expected", [
        ("points-based", ScoringMethod.POINTS),
        ("routing", ScoringMethod.DECISION_TREE),
        ("decision-tree", ScoringMethod.DECISION_TREE),
    ])
    def test_legacy_scoring_labels(self, label, expected):
        config = AssessmentConfig.model_validate({"id": "c", "slug": "s", "scoringMethod": label})
        assert config.scoring_method == expected

    def test_to_wire_uses_camel_case(self):
        config = AssessmentConfig(id="c", slug="s", gate_behavior=GateBehavior.POST_GATED)
        wire = config.to_wire()
        assert wire["gateBehavior"] == "POST_GATED"
        assert wire["scoringMethod"] == "decision-tree"
        assert "entryQuestionId" not in wire

    def test_answer_value_mapping_is_encoded(self):
        encoded = Answer.model_validate({
            "id": "A1", "questionId": "Q1", "answerText": "x",
            "answerValue": {"nextQuestionId": "Q2"},
        })
        assert encoded.answer_value == '{"nextQuestionId": "Q2"}'

    def test_null_answer_value_is_empty(self):
        assert make_answer("A1", "Q1").answer_value == ""
        answer = Answer.model_validate({"id": "A1", "questionId": "Q1", "answerText": "x", "answerValue": None})
        assert answer.answer_value == ""
