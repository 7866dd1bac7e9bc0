"""
REST API module for DesignDesk.

Provides FastAPI endpoints for:
- Authentication and profile
- Project and file management
- Designer assignment
"""
