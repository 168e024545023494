"""
Request user built from a validated JWT payload.

CareDesk does not keep its own user table for API callers; the identity
service owns accounts and the token is the only source of who is calling.
"""


class TokenUser:
    """
    Lightweight, non-database user object compatible with DRF and Django's
    ``request.user`` contract.
    """

    is_authenticated = True
    is_anonymous = False
    is_active = True
    is_staff = False
    is_superuser = False

    def __init__(self, payload):
        self.payload = payload
        self.id = payload.get('user_id')
        self.pk = self.id
        self.email = payload.get('email', '')
        self.role = (payload.get('role') or '').upper()
        self.first_name = payload.get('first_name', '')
        self.last_name = payload.get('last_name', '')

    def __str__(self):
        return self.email or str(self.id)

    def __eq__(self, other):
        return isinstance(other, TokenUser) and self.id == other.id

    def __hash__(self):
        return hash(self.id)

    @property
    def username(self):
        return self.email

    def get_username(self):
        return self.email

    def has_role(self, *roles):
        return self.role in roles

    def has_perm(self, perm, obj=None):
        return False

    def has_perms(self, perm_list, obj=None):
        return False

    def has_module_perms(self, app_label):
        return False
