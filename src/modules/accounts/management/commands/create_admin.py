from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError
from pydantic import ValidationError as PydanticValidationError

from modules.accounts.dtos import RegisterAccountDTO
from modules.accounts.exceptions import AccountAlreadyExists
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.accounts.services import AccountService


class Command(BaseCommand):
    help = "Create an ADMIN account. Administrators cannot register over HTTP."

    def add_arguments(self, parser):
        parser.add_argument("email")
        parser.add_argument("password")
        parser.add_argument("--first-name", default="")
        parser.add_argument("--last-name", default="")

    def handle(self, *args, **options):
        try:
            dto = RegisterAccountDTO(
                email=options["email"],
                password=options["password"],
                first_name=options["first_name"],
                last_name=options["last_name"],
            )
        except PydanticValidationError as exc:
            raise CommandError("; ".join(err["msg"] for err in exc.errors())) from exc

        service = AccountService(repository=AccountDjangoRepository())
        try:
            account = service.register_admin(dto)
        except AccountAlreadyExists as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(
            self.style.SUCCESS(f"Admin account created: {account.email} ({account.id})")
        )
