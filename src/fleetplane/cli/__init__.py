"""Command line interface for FleetPlane."""
