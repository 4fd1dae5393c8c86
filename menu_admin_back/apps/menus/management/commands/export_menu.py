import json

from django.core.management.base import BaseCommand, CommandError
from apps.menus.models import MenuItem


class Command(BaseCommand):
    help = 'Export a root menu and its items as JSON'

    def add_arguments(self, parser):
        parser.add_argument('menu_id', type=int)
        parser.add_argument('--output', help='Write to this file instead of stdout')

    def handle(self, *args, **options):
        root = MenuItem.objects.filter(pk=options['menu_id']).first()
        if root is None or not root.is_root():
            raise CommandError(f"Root menu {options['menu_id']} not found")

        data = json.dumps(MenuItem.dump_bulk(parent=root, keep_ids=False), ensure_ascii=False, indent=2)

        if options['output']:
            with open(options['output'], 'w', encoding='utf-8') as fp:
                fp.write(data)
            self.stdout.write(self.style.SUCCESS(f"Exported menu {root.pk} to {options['output']}"))
        else:
            self.stdout.write(data)
