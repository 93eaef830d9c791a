"""WSGI entrypoint for hosting the TempleTax backend behind Passenger."""

from templetax.backend.app import create_app

# Passenger looks for a module-level callable named ``application``.
application = create_app()
