"""ClinicDesk: data-access adapters for a clinic-management application."""

__version__ = "1.0.0"
