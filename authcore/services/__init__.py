"""Service layer: authentication lifecycle and its ports."""
