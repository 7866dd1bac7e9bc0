"""
Designer Assignment Workflow

Exports:
- AssignmentService: Assign/unassign designers and list eligible designers
"""

from .assignment_service import AssignmentService

__all__ = [
    "AssignmentService",
]
