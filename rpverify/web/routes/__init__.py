"""Web routes for the rpverify demo relying party."""

from pathlib import Path

from flask import Blueprint, Flask, render_template, session

# Get the directories relative to this package
_web_dir = Path(__file__).parent.parent
_templates_dir = _web_dir / "templates"

main_bp = Blueprint(
    "main",
    __name__,
    template_folder=str(_templates_dir),
)


@main_bp.route("/")
def index() -> str:
    """Render the landing page, showing the signed-in user if there is one."""
    from rpverify.web.routes.verify import USER_KEY

    return render_template("index.html", user=session.get(USER_KEY))


@main_bp.route("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


def init_app(app: Flask) -> None:
    """Register blueprints with the Flask app."""
    from rpverify.web.routes.verify import verify_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(verify_bp)
