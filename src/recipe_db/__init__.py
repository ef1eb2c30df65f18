"""Recipe costing and data-integrity engine."""
