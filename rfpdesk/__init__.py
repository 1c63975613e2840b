"""rfpdesk: RFP procurement workflow service."""

__version__ = "1.0.0"
