"""Form controllers."""
