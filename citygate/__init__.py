"""CityGate - resilient fan-out city information gateway."""

__version__ = "0.1.0"
