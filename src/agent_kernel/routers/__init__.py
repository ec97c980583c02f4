"""FastAPI routers for API endpoints.

This package contains all route handlers organized by resource type.
Each router module defines endpoints for one resource (tasks, agents,
memory, logs, kernel state) plus the health check and the change stream.
"""
