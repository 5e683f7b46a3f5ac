"""HTTP surface over the billing engine."""
