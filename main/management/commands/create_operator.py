from django.core.management.base import BaseCommand, CommandError

from main.models import User
from main.services.auth_service import AuthService



class Command(BaseCommand):
    help = 'Create a shop-floor account (assembler, inspector, supervisor, ...)'

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('--password', required=True)
        parser.add_argument('--first-name', required=True)
        parser.add_argument('--last-name', default='')
        parser.add_argument(
            '--role',
            default=User.RoleChoices.ASSEMBLER,
            type=str.upper,
            choices=User.RoleChoices.values,
            help='Role code (default: ASSEMBLER)'
        )

    def handle(self, *args, **options):
        result = AuthService.register(
            first_name=options['first_name'],
            last_name=options['last_name'],
            email=options['email'],
            password=options['password'],
            role=options['role'],
        )

        if not result['success']:
            raise CommandError(result['message'])

        user = result['user']
        self.stdout.write(self.style.SUCCESS(
            f'Created {user.get_role_display()} {user.full_name} <{user.email}> (id={user.id})'
        ))
