"""
WSGI entry point (also used by the Flask CLI, e.g. ``flask db`` commands).

Usage:
    gunicorn wsgi:app
    flask --app wsgi run
"""

from scholarhub import create_app

app = create_app()
