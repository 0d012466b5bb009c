"""HTTP service around the maintenance scheduling engine."""
