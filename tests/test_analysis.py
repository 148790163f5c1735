"""Graph analysis tests — edges, reachability, orphans, cycles and dangling routes."""

from assessment_engine.analysis import analyze_graph
from assessment_engine.models.graph import Answer, ResultBucket

from conftest import make_answer, make_graph, make_question


def _edge(analysis, edge_id):
    return next(e for e in analysis.edges if e.id == edge_id)


class TestEdges:
    def test_answer_and_conditional_edges(self, early_exit_graph):
        analysis = analyze_graph(early_exit_graph)
        ids = {e.id for e in analysis.edges}
        assert ids == {"answer-A1", "conditional-Q2"}

        cond = _edge(analysis, "conditional-Q2")
        assert (cond.from_question_id, cond.to_question_id) == ("Q1", "Q2")
        assert cond.label == "if: Answer A1"
        assert analysis.is_clean

    def test_sequential_edge_for_unrouted_answers(self, linear_graph):
        analysis = analyze_graph(linear_graph)
        seq = [e for e in analysis.edges if e.type == "sequential"]
        assert [(e.from_question_id, e.to_question_id) for e in seq] == [("Q1", "Q2"), ("Q2", "Q3")]
        assert analysis.reachable == ["Q1", "Q2", "Q3"]

    def test_long_labels_truncated(self):
        text = "A very long answer label that keeps going"
        graph = make_graph(
            [make_question("Q1", 1), make_question("Q2", 2)],
            [Answer(id="A1", question_id="Q1", answer_text=text, answer_value='{"nextQuestionId": "Q2"}')],
        )
        label = _edge(analyze_graph(graph), "answer-A1").label
        assert label == text[:30] + "..."


class TestProblems:
    def test_orphaned_question(self):
        graph = make_graph(
            [make_question("Q1", 1), make_question("Q2", 2)],
            [make_answer("A1", "Q1", bucket="done"), make_answer("B1", "Q2", bucket="done")],
        )
        analysis = analyze_graph(graph)
        assert analysis.orphaned == ["Q2"]
        assert analysis.reachable == ["Q1"]
        assert not analysis.is_clean

    def test_cycle_edge_flagged(self):
        graph = make_graph(
            [make_question("Q1", 1), make_question("Q2", 2)],
            [make_answer("A1", "Q1", next_question="Q2"), make_answer("B1", "Q2", next_question="Q1")],
        )
        analysis = analyze_graph(graph)
        assert [e.id for e in analysis.cycles] == ["answer-B1"]
        assert _edge(analysis, "answer-B1").is_cycle
        assert not _edge(analysis, "answer-A1").is_cycle

    def test_dangling_route(self):
        graph = make_graph(
            [make_question("Q1", 1), make_question("Q2", 2)],
            [make_answer("A1", "Q1", next_question="gone"), make_answer("B1", "Q2")],
        )
        analysis = analyze_graph(graph)
        assert analysis.dangling_routes == ["A1"]
        # The resolver falls through, so Q2 is still reachable
        assert analysis.orphaned == []

    def test_unknown_bucket_key(self):
        graph = make_graph(
            [make_question("Q1", 1)],
            [make_answer("A1", "Q1", bucket="path-9"), make_answer("A2", "Q1", bucket="path-1")],
            [ResultBucket(bucket_key="path-1")],
        )
        assert analyze_graph(graph).unknown_buckets == ["A1"]

    def test_bucket_keys_unchecked_without_buckets(self, early_exit_graph):
        assert analyze_graph(early_exit_graph).unknown_buckets == []

    def test_bundled_assessments_are_clean(self, repo_store):
        for config in repo_store.list_configs():
            analysis = analyze_graph(repo_store.get_graph(config.id))
            assert analysis.is_clean, config.slug
