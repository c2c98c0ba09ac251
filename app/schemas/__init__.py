"""
Schemas module - Request/Response schemas for API endpoints.

Schemas are the API contract (what client sends/receives); the rows behind
them live in PostgreSQL and MongoDB.
"""
