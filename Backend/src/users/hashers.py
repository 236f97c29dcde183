from django.contrib.auth.hashers import BCryptPasswordHasher


class BCrypt10PasswordHasher(BCryptPasswordHasher):
    """bcrypt pur (sans pre-hash SHA256), cout 10."""

    algorithm = "bcrypt10"
    rounds = 10
