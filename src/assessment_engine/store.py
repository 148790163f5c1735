"""AssessmentStore — loads assessment definitions from YAML files.

Each ``*.yaml`` file under the assessment directory defines one assessment::

    config:
      id: gtm-assessment
      slug: gtm-assessment
      scoringMethod: decision-tree
      gateBehavior: POST_GATED
    questions:
      - id: q-value-prop
        order: 1
        questionText: How would you describe your value proposition?
        answers:
          - id: a-simple
            answerText: Simple
            answerValue: {resultBucketKey: path-1}
    buckets:
      - bucketKey: path-1
        title: Simple Value Proposition Path

Answers may be nested under their question (``questionId`` is filled in) or
listed in a top-level ``answers:`` section.  Routing payloads and conditions
may be written as mappings; they are encoded to JSON strings on load.

Usage::

    store = AssessmentStore()          # defaults to assessments/ at repo root
    store.load()
    graph = store.get_graph("gtm-assessment")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from assessment_engine.graph import QuestionGraph
from assessment_engine.models.graph import Answer, AssessmentConfig, Question, ResultBucket

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


@dataclass
class AssessmentDefinition:
    """All records of one assessment as loaded from a YAML file."""

    config: AssessmentConfig
    questions: list[Question] = field(default_factory=list)
    answers: list[Answer] = field(default_factory=list)
    buckets: list[ResultBucket] = field(default_factory=list)

    def to_graph(self) -> QuestionGraph:
        return QuestionGraph(self.config, self.questions, self.answers, self.buckets)


def parse_definition(raw: dict, source: str = "<memory>") -> AssessmentDefinition:
    """Build an :class:`AssessmentDefinition` from a parsed YAML mapping.

    Raises:
        ValueError: if the mapping has no ``config`` section.
    """
    if not isinstance(raw, dict) or "config" not in raw:
        raise ValueError(f"Assessment definition {source} has no 'config' section")

    config = AssessmentConfig.model_validate(raw["config"])
    questions: list[Question] = []
    answers: list[Answer] = []

    for q_dict in raw.get("questions") or []:
        q_dict = dict(q_dict)
        nested = q_dict.pop("answers", None) or []
        question = Question.model_validate(q_dict)
        questions.append(question)
        for a_dict in nested:
            answers.append(Answer.model_validate({"questionId": question.id, **a_dict}))

    for a_dict in raw.get("answers") or []:
        answers.append(Answer.model_validate(a_dict))

    buckets = [ResultBucket.model_validate(b) for b in raw.get("buckets") or []]
    return AssessmentDefinition(config=config, questions=questions, answers=answers, buckets=buckets)


# ---------------------------------------------------------------------------
# AssessmentStore
# ---------------------------------------------------------------------------

class AssessmentStore:
    """Loads every assessment YAML file in a directory and provides lookup.

    Attributes populated after :meth:`load`:

        definitions — dict[config id, AssessmentDefinition]
    """

    def __init__(self, assessment_dir: str | Path | None = None) -> None:
        if assessment_dir is None:
            assessment_dir = find_repo_root() / "assessments"
        self._base = Path(assessment_dir)
        self.definitions: dict[str, AssessmentDefinition] = {}
        self._slugs: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse all ``*.yaml`` files under the assessment directory.

        Raises:
            FileNotFoundError: if the directory does not exist.
            ValueError: on a duplicate config id or slug.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing assessment directory: {self._base}")

        for path in sorted(self._base.glob("*.yaml")):
            self.add(parse_definition(load_yaml(path), source=str(path)))

        logger.info("AssessmentStore loaded: %d assessments from %s", len(self.definitions), self._base)

    def add(self, definition: AssessmentDefinition) -> None:
        """Register a definition (also used by tests to build stores in memory)."""
        config = definition.config
        if config.id in self.definitions:
            raise ValueError(f"Assessment id {config.id!r} already exists")
        if config.slug in self._slugs:
            raise ValueError(f"Assessment slug {config.slug!r} already exists")
        self.definitions[config.id] = definition
        self._slugs[config.slug] = config.id

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get_by_slug(self, slug: str) -> AssessmentDefinition | None:
        config_id = self._slugs.get(slug)
        return self.definitions.get(config_id) if config_id else None

    def get(self, config_id: str) -> AssessmentDefinition:
        """Return a definition by config id.

        Raises:
            KeyError: if no assessment has that id.
        """
        return self.definitions[config_id]

    def get_graph(self, config_id: str) -> QuestionGraph:
        return self.get(config_id).to_graph()

    def list_configs(self) -> list[AssessmentConfig]:
        return [d.config for d in self.definitions.values()]
