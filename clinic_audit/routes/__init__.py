from .auth import auth_bp
from .audits import audits_bp
from .goals import goals_bp
from .users import users_bp
from .clinic import clinic_bp
from .health import health_bp

__all__ = ['auth_bp', 'audits_bp', 'goals_bp', 'users_bp', 'clinic_bp', 'health_bp']
