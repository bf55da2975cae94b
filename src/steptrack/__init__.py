"""Activity session tracking and step rewards engine."""
