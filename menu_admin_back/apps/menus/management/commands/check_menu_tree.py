from django.core.management.base import BaseCommand, CommandError
from apps.menus.models import MenuItem
from apps.menus.utils import find_nested_set_problems


class Command(BaseCommand):
    help = 'Print menu trees and verify the nested-set bounds of every item'

    def add_arguments(self, parser):
        parser.add_argument('--root', type=int, help='Only check the tree of this root menu id')

    def handle(self, *args, **options):
        if options['root'] is not None:
            root = MenuItem.objects.filter(pk=options['root']).first()
            if root is None or not root.is_root():
                raise CommandError(f"Root menu {options['root']} not found")
            menus = list(MenuItem.get_tree(root))
        else:
            menus = list(MenuItem.get_tree())

        for menu in menus:
            indent = '  ' * (menu.depth - 1)
            self.stdout.write(f"{indent}- {menu.title} (id={menu.id}, lft={menu.lft}, rgt={menu.rgt})")

        problems = find_nested_set_problems(menus)
        if problems:
            for problem in problems:
                self.stderr.write(f"  {problem}")
            raise CommandError(f"{len(problems)} nested-set problem(s) found")

        self.stdout.write(self.style.SUCCESS(f"Menu tree OK ({len(menus)} items)"))
