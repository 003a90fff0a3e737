from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from DocumentWorkflowApp.core.choices import UserRole

class Command(BaseCommand):
    help = "Create a curator account, or promote an existing account to curator."

    def add_arguments(self, parser):
        parser.add_argument("email")
        parser.add_argument("--name", default="", help="Display name for a new account.")
        parser.add_argument("--password", help="Password for a new account.")

    def handle(self, *args, **options):
        User = get_user_model()
        email = options["email"]
        user = User.objects.filter(email=email).first()
        if user is None:
            if not options["password"]:
                raise CommandError("--password is required when creating a new account.")
            user = User.objects.create_user(
                email=email,
                password=options["password"],
                name=options["name"] or email,
                role=UserRole.CURATOR,
            )
            self.stdout.write(self.style.SUCCESS(f"Created curator {user.email} (id={user.id})"))
            return
        if user.role == UserRole.CURATOR:
            self.stdout.write(f"{user.email} is already a curator")
            return
        user.role = UserRole.CURATOR
        user.save(update_fields=["role"])
        self.stdout.write(self.style.SUCCESS(f"Promoted {user.email} to curator"))
