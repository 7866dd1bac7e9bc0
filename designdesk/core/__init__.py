# Lazy imports to avoid triggering the full dependency chain.
# This allows targeted imports like `from designdesk.core.db.models import Base`
# without pulling in the auth and storage stacks.

__all__ = [
    "DatabaseManager",
    "ProjectManager",
    "AssignmentService",
    "SessionResolver",
    "Identity",
    "LocalBlobStore",
]

_IMPORT_MAP = {
    "DatabaseManager": ".db",
    "ProjectManager": ".project",
    "AssignmentService": ".assignment",
    "SessionResolver": ".auth",
    "Identity": ".auth",
    "LocalBlobStore": ".storage",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'designdesk.core' has no attribute {name}")
