"""Organization module — Profile, Team, Shift models, schemas and services."""

from portal.organization.models import Profile, Shift, Team

__all__ = ["Profile", "Team", "Shift"]
