"""callcheck CLI."""
