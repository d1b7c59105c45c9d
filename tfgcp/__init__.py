"""tfgcp — Terraform workflows on Google Cloud."""

__version__ = "0.1.0"
