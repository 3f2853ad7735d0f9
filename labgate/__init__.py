"""Multi-tenant session gateway in front of the GitLab REST API."""

__version__ = "0.1.0"
