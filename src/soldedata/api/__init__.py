"""REST API (FastAPI) exposing the extraction pipeline."""
