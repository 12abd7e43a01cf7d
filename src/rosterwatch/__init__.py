"""RosterWatch: live player roster dashboard for the bot detector API."""

__version__ = "0.1.0"
