# wsgi.py
# Production entrypoint for Gunicorn

import os

from app import create_app

app = create_app()

if __name__ == "__main__":
    # Local runs only; production goes through gunicorn
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
