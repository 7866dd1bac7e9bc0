"""Shared constants for DesignDesk.

This module contains constants that are used across multiple modules
to avoid duplication and ensure consistency.
"""

# =============================================================================
# Role Names
# =============================================================================

ROLE_CLIENT = "client"
ROLE_PROJECT_MANAGER = "project_manager"
ROLE_DESIGNER = "designer"

ALL_ROLES = (ROLE_CLIENT, ROLE_PROJECT_MANAGER, ROLE_DESIGNER)

# =============================================================================
# Display Fallbacks
# =============================================================================

# Identity name when the profile has none
DEFAULT_IDENTITY_NAME = "User"

# Designer name when the assigned designer's profile has no name
UNNAMED_DESIGNER = "Unnamed Designer"

# Shown in project lists when a designer is set but the name could not be resolved
ASSIGNED_LABEL = "Assigned"

# =============================================================================
# Uploads
# =============================================================================

# Length of the random base36 token used for stored file names
STORED_NAME_LENGTH = 13

DEFAULT_MAX_UPLOAD_SIZE_MB = 50

# =============================================================================
# Auth
# =============================================================================

MIN_PASSWORD_LENGTH = 6
