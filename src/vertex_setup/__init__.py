"""
vertex-setup - interactive setup assistant for Google Cloud Vertex AI.

Walks a developer from an installed ``gcloud`` to a working Gemini API call:
- enables the Vertex AI service (with confirmation)
- lists the models available in a region
- bootstraps Application Default Credentials
- checks the environment variables client code expects
- makes one sample generateContent request
- prints copy-paste usage instructions
"""

__version__ = "0.1.0"

from vertex_setup.onboarding.wizard import SetupWizard

__all__ = [
    "SetupWizard",
    "__version__",
]
