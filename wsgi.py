"""WSGI entry point for Gunicorn and the flask CLI (FLASK_APP=wsgi)."""
from stockorders import create_app

# Create the application instance
app = create_app()

if __name__ == "__main__":
    app.run()
