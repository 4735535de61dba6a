"""
Serving — FastAPI application exposing source reading and chunking.

Run locally with ``uvicorn dataset_ingest.serving.app:app``.
"""
