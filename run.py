"""Application entry point for the drama catalog API.

Starts the Flask development server or is used by gunicorn in production.

Usage:
    Development:  python run.py
    Production:   gunicorn --bind 0.0.0.0:5000 --workers 2 --threads 4 run:app
"""
from app import create_app
from app.config import get_settings

app = create_app()

if __name__ == "__main__":
    settings = get_settings()
    app.run(host=settings.HOST, port=settings.PORT, debug=settings.FLASK_DEBUG)
