import jwt
import logging
import uuid
from django.conf import settings
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from .auth_backends import TokenUser
from .drf_auth import ROLES

logger = logging.getLogger(__name__)


def _auth_error(message, status, code='not_authenticated'):
    return JsonResponse(
        {'success': False, 'error': {'code': code, 'message': message, 'detail': {}}},
        status=status
    )


class JWTAuthenticationMiddleware(MiddlewareMixin):
    """
    Validate bearer JWTs issued by the identity service and set
    request.user / request.user_id / request.role for API requests.
    """

    # Only paths under this prefix require a token
    API_PREFIX = '/api/'

    # API paths that don't require authentication
    PUBLIC_PATHS = [
        '/api/docs/',
        '/api/schema/',
        '/api/redoc/',
    ]

    REQUIRED_FIELDS = ['user_id', 'email', 'role']

    def process_request(self, request):
        """Process incoming request and validate JWT token"""

        if not request.path.startswith(self.API_PREFIX):
            return None

        if any(request.path.startswith(path) for path in self.PUBLIC_PATHS):
            return None

        # Get Authorization header
        auth_header = request.META.get('HTTP_AUTHORIZATION')
        if not auth_header:
            logger.warning(f"Missing Authorization header - Path: {request.path}, Method: {request.method}")
            return _auth_error('Authorization header required', 401)

        # Extract token from "Bearer <token>" format
        try:
            scheme, token = auth_header.split(' ', 1)
        except ValueError:
            logger.warning(f"Malformed Authorization header - Path: {request.path}")
            return _auth_error('Invalid authorization header format', 401)

        if scheme.lower() != 'bearer':
            logger.warning(f"Invalid auth scheme '{scheme}' - Path: {request.path}")
            return _auth_error('Invalid authorization scheme. Use Bearer token', 401)

        secret_key = getattr(settings, 'JWT_SECRET_KEY', None)
        algorithm = getattr(settings, 'JWT_ALGORITHM', 'HS256')
        leeway = getattr(settings, 'JWT_LEEWAY', 30)

        if not secret_key:
            logger.error("JWT_SECRET_KEY not configured")
            return _auth_error('JWT_SECRET_KEY not configured', 500, code='server_error')

        try:
            payload = jwt.decode(
                token,
                secret_key,
                algorithms=[algorithm],
                leeway=leeway  # Tolerate clock skew between servers
            )
        except jwt.ExpiredSignatureError:
            logger.warning(f"Expired JWT token - Path: {request.path}")
            return _auth_error('Token has expired', 401)
        except jwt.InvalidTokenError as e:
            logger.error(f"Invalid JWT token: {str(e)} - Path: {request.path}, Algorithm: {algorithm}")
            return _auth_error(f'Invalid token: {str(e)}', 401)

        # Validate required fields in payload
        for field in self.REQUIRED_FIELDS:
            if field not in payload:
                logger.error(
                    f"Missing JWT field '{field}' - Path: {request.path}, "
                    f"Available fields: {list(payload.keys())}"
                )
                return _auth_error(f'Missing required field in token: {field}', 401)

        # user_id is stored in UUID columns (created_by_id, user_id, ...)
        try:
            uuid.UUID(str(payload['user_id']))
        except ValueError:
            logger.warning(f"Non-UUID user_id '{payload['user_id']}' in token - Path: {request.path}")
            return _auth_error('Invalid user_id in token', 401)

        user = TokenUser(payload)
        if user.role not in ROLES:
            logger.warning(f"Unknown role '{payload['role']}' - Path: {request.path}, User: {user.email}")
            return _auth_error(f"Unknown role: {payload['role']}", 403, code='permission_denied')

        request.user = user
        request._cached_user = user  # Cache to prevent re-authentication
        request.user_id = user.id
        request.email = user.email
        request.role = user.role

        logger.info(f"JWT auth successful - Path: {request.path}, User: {user.email}, Role: {user.role}")
        return None
