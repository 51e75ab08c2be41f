"""Taskboard: projects, tasks and custom fields on a Kanban board."""

__version__ = "0.1.0"
