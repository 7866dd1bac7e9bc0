"""
Project Repository Access

Exports:
- ProjectManager: Role-scoped CRUD for projects and their files
- FileUpload, DownloadedFile: File transfer values
"""

from .project_manager import DownloadedFile, FileUpload, ProjectManager, generate_stored_name

__all__ = [
    "ProjectManager",
    "FileUpload",
    "DownloadedFile",
    "generate_stored_name",
]
