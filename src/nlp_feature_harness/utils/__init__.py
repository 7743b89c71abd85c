"""Small generic containers used by the feature layer."""
