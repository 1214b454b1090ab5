"""Alert-specific diagnostic collection and LLM-assisted analysis for OpenShift clusters."""

__version__ = "0.1.0"
