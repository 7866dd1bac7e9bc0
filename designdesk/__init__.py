"""DesignDesk: role-based design project coordination."""

__version__ = "0.1.0"
