"""Domain layer: catalog entities, diffing, change records and the change feed."""
