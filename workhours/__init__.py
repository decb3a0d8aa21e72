"""Work hours reporting over Azure DevOps work items."""

__version__ = "0.1.0"
