"""Meeting rooms module — room catalogue, booking validation and review workflow."""

from portal.rooms.models import MeetingRoom, RoomBooking

__all__ = ["MeetingRoom", "RoomBooking"]
