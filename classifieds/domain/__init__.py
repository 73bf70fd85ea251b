"""Domain rules: listing identifiers, listing validation, ownership policy."""
