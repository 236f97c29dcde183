from django.core.management.base import BaseCommand, CommandError

from users.models import User, normalize_email


class Command(BaseCommand):
    help = "Change le role d'un utilisateur (le role n'est pas modifiable via l'API)."

    def add_arguments(self, parser):
        parser.add_argument("email", type=str, help="Email de l'utilisateur")
        parser.add_argument("role", type=str, choices=User.Role.values, help="Nouveau role")

    def handle(self, *args, **opts):
        email = normalize_email(opts["email"])
        role = opts["role"]

        user = User.objects.filter(email=email).first()
        if user is None:
            raise CommandError(f"Aucun utilisateur avec l'email '{email}'")

        previous = user.role
        user.role = role
        user.save(update_fields=["role", "updated_at"])
        self.stdout.write(self.style.SUCCESS(f"{email}: {previous} -> {role}"))
