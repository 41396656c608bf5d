"""Report how long ago each ``prod/*`` GitLab environment was last deployed."""

__version__ = "0.1.0"
