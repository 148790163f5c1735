"""Static analysis of an assessment's question graph.

Used by admin tooling to spot authoring problems before a graph is
published.  Three kinds of edge are derived from the records:

  - answer edges: an answer's ``nextQuestionId`` (question → question)
  - sequential edges: a question with at least one answer that carries no
    usable routing falls through to the next question in sorted order
  - conditional edges: a question's ``conditionalLogic`` (the referenced
    question → the conditional question)

From those the analysis reports reachability from the entry question,
orphaned questions, edges that close a cycle, and routing payloads that
point at questions or buckets that do not exist.

Cycles and dangling targets are not fatal at runtime (the resolver falls
back to sequential routing) but usually indicate an authoring mistake.
"""

from __future__ import annotations

import logging
from typing import Literal

from assessment_engine.constants import EDGE_LABEL_MAX_CHARS
from assessment_engine.evaluator import decode_conditional_logic
from assessment_engine.graph import QuestionGraph
from assessment_engine.models.graph import WireModel
from assessment_engine.router import decode_routing_payload

logger = logging.getLogger(__name__)


class GraphNode(WireModel):
    id: str
    question_text: str
    order: int
    is_entry: bool = False
    is_reachable: bool = False
    is_orphaned: bool = False
    has_conditional_logic: bool = False


class GraphEdge(WireModel):
    id: str
    from_question_id: str
    to_question_id: str
    answer_id: str | None = None
    type: Literal["answer", "conditional", "sequential"]
    label: str
    is_cycle: bool = False


class GraphAnalysis(WireModel):
    """Result of :func:`analyze_graph`.  Lists preserve sorted question order.

    Served as camelCase by ``to_wire()``, like the rest of the data service
    payloads.
    """

    entry_question_id: str | None
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    reachable: list[str]
    orphaned: list[str]
    cycles: list[GraphEdge]
    # answer ids whose nextQuestionId names no question
    dangling_routes: list[str]
    # answer ids whose resultBucketKey names no bucket (only checked when
    # the graph carries buckets)
    unknown_buckets: list[str]

    @property
    def is_clean(self) -> bool:
        return not (self.orphaned or self.cycles or self.dangling_routes or self.unknown_buckets)


def _truncate(text: str) -> str:
    if len(text) > EDGE_LABEL_MAX_CHARS:
        return text[:EDGE_LABEL_MAX_CHARS] + "..."
    return text


def analyze_graph(graph: QuestionGraph) -> GraphAnalysis:
    """Build nodes/edges for ``graph`` and report structural problems."""
    questions = graph.sorted_questions()
    entry = graph.entry_question_id
    bucket_keys = {b.bucket_key for b in graph.buckets}

    nodes = {
        q.id: GraphNode(
            id=q.id,
            question_text=q.question_text,
            order=q.order,
            is_entry=q.id == entry,
            has_conditional_logic=bool(q.conditional_logic),
        )
        for q in questions
    }

    edges: list[GraphEdge] = []
    dangling: list[str] = []
    unknown_buckets: list[str] = []

    # --- Answer edges ---
    for pos, q in enumerate(questions):
        falls_through = False
        for answer in graph.answers_for(q.id):
            payload = decode_routing_payload(answer.answer_value)
            if payload is None:
                falls_through = True
                continue
            if payload.result_bucket_key:
                if bucket_keys and payload.result_bucket_key not in bucket_keys:
                    unknown_buckets.append(answer.id)
                continue
            if payload.next_question_id not in nodes:
                dangling.append(answer.id)
                falls_through = True
                continue
            edges.append(GraphEdge(
                id=f"answer-{answer.id}",
                from_question_id=answer.question_id,
                to_question_id=payload.next_question_id,
                answer_id=answer.id,
                type="answer",
                label=_truncate(answer.answer_text),
            ))

        # Answers without usable routing continue with the next question in order
        if falls_through and pos + 1 < len(questions):
            edges.append(GraphEdge(
                id=f"sequential-{q.id}",
                from_question_id=q.id,
                to_question_id=questions[pos + 1].id,
                type="sequential",
                label="next",
            ))

    # --- Conditional edges ---
    for q in questions:
        condition = decode_conditional_logic(q.conditional_logic)
        if condition is None or condition.question_id not in nodes:
            continue
        answer = graph.get_answer(condition.answer_id)
        label = _truncate(answer.answer_text) if answer else "condition"
        edges.append(GraphEdge(
            id=f"conditional-{q.id}",
            from_question_id=condition.question_id,
            to_question_id=q.id,
            answer_id=condition.answer_id,
            type="conditional",
            label=f"if: {label}",
        ))

    adjacency: dict[str, list[str]] = {qid: [] for qid in nodes}
    for edge in edges:
        adjacency[edge.from_question_id].append(edge.to_question_id)

    # --- Reachability from the entry question ---
    reachable: set[str] = set()
    stack = [entry] if entry else []
    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            continue
        reachable.add(node_id)
        stack.extend(adjacency.get(node_id, []))

    # --- Cycle detection (white/gray/black DFS) ---
    white, gray, black = 0, 1, 2
    colors = {qid: white for qid in nodes}
    back_edges: set[tuple[str, str]] = set()

    def visit(node_id: str) -> None:
        colors[node_id] = gray
        for neighbor in adjacency[node_id]:
            if colors[neighbor] == gray:
                back_edges.add((node_id, neighbor))
            elif colors[neighbor] == white:
                visit(neighbor)
        colors[node_id] = black

    for qid in nodes:
        if colors[qid] == white:
            visit(qid)

    cycles = []
    for edge in edges:
        if (edge.from_question_id, edge.to_question_id) in back_edges:
            edge.is_cycle = True
            cycles.append(edge)

    orphaned = []
    for qid, node in nodes.items():
        node.is_reachable = qid in reachable
        if not node.is_reachable and not node.is_entry:
            node.is_orphaned = True
            orphaned.append(qid)

    if cycles or dangling:
        logger.info(
            "Graph %s: %d cycle edges, %d dangling routes, %d orphaned questions",
            graph.config.slug, len(cycles), len(dangling), len(orphaned),
        )

    return GraphAnalysis(
        entry_question_id=entry,
        nodes=list(nodes.values()),
        edges=edges,
        reachable=[q.id for q in questions if q.id in reachable],
        orphaned=orphaned,
        cycles=cycles,
        dangling_routes=dangling,
        unknown_buckets=unknown_buckets,
    )
