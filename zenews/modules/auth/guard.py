"""
Auth Guard
==========

One rule decides who may perform privileged operations:
is_privileged(role) -> role in {admin, editor}.

It is enforced twice:
- at the edge, by admin_edge_guard() on every /admin page request
  (redirects, since browsers land there);
- in handlers, by @privileged_required on API views (JSON 401/403).
"""

from collections import namedtuple
from functools import wraps

from flask import current_app, redirect, request, session, url_for

from ...core.errors import InsufficientRoleError, NotAuthenticatedError
from ...core.logging_service import LoggingService

PRIVILEGED_ROLES = frozenset({'admin', 'editor'})

# /admin pages reachable without a privileged session
PUBLIC_ADMIN_ENDPOINTS = {'admin.signin', 'admin.signup', 'admin.signout'}

AuthContext = namedtuple('AuthContext', ['authenticated', 'role', 'profile'])

ANONYMOUS = AuthContext(authenticated=False, role=None, profile=None)

AUTH_ENVIRON_KEY = 'zenews.auth'


def is_privileged(role):
    """The shared predicate: admin and editor may manage content"""
    return role in PRIVILEGED_ROLES


def resolve_auth(profile):
    """Build an AuthContext from a profile dict (or None)"""
    if not profile:
        return ANONYMOUS
    return AuthContext(authenticated=True, role=profile.get('role'), profile=profile)


def check_privileged(ctx):
    """Raise the precise failure for a context that may not act"""
    if not ctx.authenticated:
        raise NotAuthenticatedError()
    if not is_privileged(ctx.role):
        raise InsufficientRoleError()
    return ctx.profile


def current_auth():
    """Resolve the session's profile once per request.

    Cached in the WSGI environ: flask.g lives on the app context, which
    is shared by every request made while one is already pushed.
    """
    cached = request.environ.get(AUTH_ENVIRON_KEY)
    if cached is not None:
        return cached

    profile = None
    user_id = session.get('user_id')
    if user_id:
        profile = current_app.extensions['zenews'].profiles.get(user_id)
        if profile is None:
            # Profile was removed since sign in
            session.pop('user_id', None)

    ctx = resolve_auth(profile)
    request.environ[AUTH_ENVIRON_KEY] = ctx
    return ctx


def current_profile():
    return current_auth().profile


def login_required(f):
    """Decorator to require any signed-in profile"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_auth().authenticated:
            raise NotAuthenticatedError()
        return f(*args, **kwargs)
    return decorated_function


def privileged_required(f):
    """Decorator to require an admin or editor profile"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        ctx = current_auth()
        try:
            check_privileged(ctx)
        except InsufficientRoleError:
            LoggingService.log_security_event(
                'Privileged API call denied',
                {'path': request.path, 'method': request.method, 'role': ctx.role},
            )
            raise
        return f(*args, **kwargs)
    return decorated_function


def admin_edge_guard():
    """before_app_request hook for /admin pages"""
    if not request.path.startswith('/admin'):
        return None
    if request.endpoint in PUBLIC_ADMIN_ENDPOINTS:
        return None

    ctx = current_auth()
    if not ctx.authenticated:
        return redirect(url_for('admin.signin', next=request.path))
    if not is_privileged(ctx.role):
        LoggingService.log_security_event(
            'Admin page denied for insufficient role', {'path': request.path, 'role': ctx.role}
        )
        return redirect('/')
    return None
