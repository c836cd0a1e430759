from django.core.management.base import BaseCommand, CommandError
from shop_admin.models import ShopAdmin
from nevyra.utils import generate_admin_token
from nevyra.validators import PASSWORD_MESSAGE, is_email, is_strong_password


class Command(BaseCommand):
    help = 'Create the initial shop admin if it does not exist and print an admin token'

    def add_arguments(self, parser):
        parser.add_argument('--email', default='admin@nevyra.com')
        parser.add_argument('--password', required=True)
        parser.add_argument('--first-name', default='Admin')
        parser.add_argument('--last-name', default='User')

    def handle(self, *args, **options):
        email = options['email']
        if not is_email(email):
            raise CommandError('Please provide a valid email address')

        shop_admin = ShopAdmin.get_by_email(email)
        if shop_admin:
            self.stdout.write(f'Admin already exists: {email}')
        else:
            if not is_strong_password(options['password']):
                raise CommandError(PASSWORD_MESSAGE)
            shop_admin = ShopAdmin.create(
                email=email,
                password=options['password'],
                first_name=options['first_name'],
                last_name=options['last_name'],
            )
            self.stdout.write(self.style.SUCCESS(f'Admin created: {email}'))

        self.stdout.write(f'Admin JWT token: {generate_admin_token(shop_admin.admin_id, shop_admin.email)}')
