"""
Blueprint registration for the Student Life Tracker.

Specific routes are registered before the generic /api/<domain> CRUD routes;
Werkzeug also ranks static path segments above converters, so /api/settings
and /api/study-sessions/week never reach the generic handlers.
"""

from __future__ import annotations


def register_blueprints(app):
    from blueprints.core import bp as core_bp
    from blueprints.settings import bp as settings_bp
    from blueprints.semesters import bp as semesters_bp
    from blueprints.study import bp as study_bp
    from blueprints.profile import bp as profile_bp
    from blueprints.records import bp as records_bp

    app.register_blueprint(core_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(semesters_bp)
    app.register_blueprint(study_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(records_bp)
