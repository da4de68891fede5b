"""Ops portal — meeting rooms, tasks, leave and organization back end."""
