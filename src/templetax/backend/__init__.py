"""Backend services for the TempleTax portal."""
