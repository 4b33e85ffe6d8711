"""Multi-tenant Todo REST API with statistics and a QA simulation harness."""

__version__ = "1.0.0"
