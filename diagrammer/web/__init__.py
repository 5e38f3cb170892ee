"""Web — FastAPI surface over one in-process diagram."""
