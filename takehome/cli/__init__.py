"""Take Home CLI."""
