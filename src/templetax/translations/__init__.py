"""Message catalogues shipped with the package."""
