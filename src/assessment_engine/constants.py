"""Assessment engine constants shared across the SDK.

Several constants can be overridden via environment variables so that
deployments can point the engine at a different data service or result page
without code changes.
"""

import os

# Where a finished run navigates when the data service does not return an
# explicit result URL.  ``{session_id}`` is substituted.
# Overridable via RESULT_URL_TEMPLATE env var.
RESULT_URL_TEMPLATE = os.getenv("RESULT_URL_TEMPLATE", "/assessments/results/{session_id}")

# Base URL of the assessment data service used by HttpAssessmentService.
# Overridable via ASSESSMENT_API_BASE_URL env var.
DEFAULT_API_BASE_URL = os.getenv("ASSESSMENT_API_BASE_URL", "http://localhost:5000")

# Per-request timeout (seconds) for the HTTP data service client.
# Overridable via ASSESSMENT_HTTP_TIMEOUT env var.
DEFAULT_HTTP_TIMEOUT = float(os.getenv("ASSESSMENT_HTTP_TIMEOUT", "10"))

# User-facing messages for boundary failures.  Internal details go to the log.
SUBMIT_ERROR_MESSAGE = "Failed to submit assessment. Please try again."
LEAD_ERROR_MESSAGE = "Failed to save your information. Please try again."
UNAVAILABLE_MESSAGE = "Assessment not found or not published"

# Answer labels longer than this are truncated in graph analysis edge labels.
EDGE_LABEL_MAX_CHARS = 30
