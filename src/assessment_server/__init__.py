"""assessment_server — FastAPI reference data service for configurable assessments.

Serves assessment content loaded from YAML, scores submissions server-side,
gates results behind lead capture for POST_GATED assessments, and exposes
graph analysis for authoring.
"""
