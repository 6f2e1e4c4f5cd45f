import os

from studysphere import create_app

app = create_app(os.getenv("FLASK_ENV", "production"))

if __name__ == "__main__":
    # bind all interfaces for Docker
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=app.config.get("DEBUG", False))
