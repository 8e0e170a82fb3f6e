"""HTTP blueprints of the directory data service."""
