"""Data fixtures for testing.

Static gcloud JSON output and generateContent responses shaped like the real
services return them.
"""

from typing import Any, Dict, List

PROJECT_ID = "demo-project-123"
REGION = "us-central1"

# =============================================================================
# gcloud output
# =============================================================================

ENABLED_SERVICES: List[Dict[str, Any]] = [
    {
        "name": "projects/123456789/services/compute.googleapis.com",
        "config": {"name": "compute.googleapis.com", "title": "Compute Engine API"},
        "state": "ENABLED",
    },
    {
        "name": "projects/123456789/services/aiplatform.googleapis.com",
        "config": {"name": "aiplatform.googleapis.com", "title": "Vertex AI API"},
        "state": "ENABLED",
    },
]

SERVICES_WITHOUT_VERTEX: List[Dict[str, Any]] = ENABLED_SERVICES[:1]

MODEL_RECORDS: List[Dict[str, Any]] = [
    {
        "name": f"projects/123456789/locations/{REGION}/models/7311",
        "displayName": "churn-classifier",
        "description": "Tabular churn model",
    },
    {
        "name": f"projects/123456789/locations/{REGION}/models/1002",
        "displayName": "support-summarizer",
        "supportedRegions": ["us-central1", "europe-west4"],
    },
    {
        "name": f"projects/123456789/locations/{REGION}/models/5550",
    },
]

# =============================================================================
# generateContent responses
# =============================================================================

GENERATE_RESPONSE: Dict[str, Any] = {
    "candidates": [
        {
            "content": {
                "role": "model",
                "parts": [
                    {"text": "Vertex AI is Google Cloud's managed ML platform. "},
                    {"text": "It recently added new Gemini models."},
                ],
            },
            "finishReason": "STOP",
        }
    ],
    "usageMetadata": {"promptTokenCount": 18, "candidatesTokenCount": 21},
}

GROUNDED_RESPONSE: Dict[str, Any] = {
    "candidates": [
        {
            "content": {"role": "model", "parts": [{"text": "Grounded answer [1]."}]},
            "groundingMetadata": {
                "webSearchQueries": ["vertex ai announcement"],
                "groundingChunks": [
                    {"web": {"uri": "https://cloud.google.com/blog/vertex", "title": "Cloud Blog"}},
                    {"web": {"uri": "https://example.com/news"}},
                    {"retrievedContext": {"uri": "gs://bucket/doc"}},
                ],
            },
        }
    ]
}

NO_CANDIDATES_RESPONSE: Dict[str, Any] = {
    "promptFeedback": {"blockReason": "SAFETY"},
}

NO_TEXT_RESPONSE: Dict[str, Any] = {
    "candidates": [{"content": {"role": "model", "parts": [{"inlineData": {"mimeType": "image/png"}}]}}],
}

PERMISSION_DENIED_BODY: Dict[str, Any] = {
    "error": {
        "code": 403,
        "message": "Permission 'aiplatform.endpoints.predict' denied on resource",
        "status": "PERMISSION_DENIED",
    }
}

GCLOUD_PERMISSION_STDERR = (
    "ERROR: (gcloud.services.enable) PERMISSION_DENIED: Permission denied to enable service "
    "[aiplatform.googleapis.com]"
)
