"""
Bearer tokens for the JSON update endpoint.

A token is the user's primary key signed with the project SECRET_KEY
(django.core.signing), so nothing is stored server-side. Tokens expire after
settings.API_TOKEN_MAX_AGE seconds.
"""

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing

SALT = "sheetrows.api-token"


def issue_token(user):
    return signing.dumps({"uid": user.pk}, salt=SALT)


def user_from_token(token):
    """The active user the token was issued to, or None."""
    try:
        data = signing.loads(token, salt=SALT, max_age=settings.API_TOKEN_MAX_AGE)
    except signing.BadSignature:
        return None

    User = get_user_model()
    return User.objects.filter(pk=data.get("uid"), is_active=True).first()


def bearer_token(request):
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
