from rest_framework_simplejwt.authentication import JWTAuthentication


class BearerAuthentication(JWTAuthentication):
    """
    `Authorization: Bearer <token>` -> (user, token valide).

    simplejwt verifie signature + expiration et recharge l'utilisateur par
    le claim `sub`; toute erreur devient un 401 uniforme via
    common.exceptions.api_exception_handler.
    """

    www_authenticate_realm = "audit-api"
