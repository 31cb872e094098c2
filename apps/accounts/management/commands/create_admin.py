from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.accounts.models import Role


class Command(BaseCommand):
    help = "Create an administrator account, or promote an existing username to administrator."

    def add_arguments(self, parser):
        parser.add_argument("--username", required=True)
        parser.add_argument("--password", default=None, help="Required when creating a new account")
        parser.add_argument("--email", default="admin@example.com")
        parser.add_argument("--phone", default="0000000000")

    def handle(self, *args, **options):
        User = get_user_model()
        username = options["username"].strip()
        user = User.objects.filter(username=username).first()
        if user:
            if user.role == Role.ADMINISTRATOR:
                self.stdout.write(f"{username} is already an administrator.")
                return
            user.role = Role.ADMINISTRATOR
            user.save(update_fields=["role", "updated_at"])
            self.stdout.write(self.style.SUCCESS(f"Promoted {username} to administrator."))
            return
        if not options["password"]:
            raise CommandError("--password is required to create a new administrator")
        user = User(username=username, email=options["email"], phone=options["phone"], role=Role.ADMINISTRATOR)
        user.set_password(options["password"])
        user.save()
        self.stdout.write(self.style.SUCCESS(f"Administrator {username} created."))
