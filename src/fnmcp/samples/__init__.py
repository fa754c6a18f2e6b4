"""Sample tool modules."""
