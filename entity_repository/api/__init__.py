"""FastAPI integration: repository dependencies, pagination and error mapping."""
