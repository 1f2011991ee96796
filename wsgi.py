"""
WSGI / Flask-Migrate entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi create-profile --email admin@example.com --name Admin --role admin
    flask --app wsgi seed-demo
    flask --app wsgi db migrate -m "description"
"""

from missionboard import create_app

app = create_app()
