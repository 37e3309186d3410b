"""Package registry collaborators."""
