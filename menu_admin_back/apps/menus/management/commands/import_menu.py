import json

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from rest_framework import serializers

from apps.menus.models import MenuItem
from apps.menus.options import OptionsEditor


def validate_bulk(nodes, path='root'):
    """load_bulk 형식 ([{'data': {...}, 'children': [...]}]) 검증"""
    if not isinstance(nodes, list):
        raise CommandError(f"{path}: expected a list of nodes")

    for index, node in enumerate(nodes):
        node_path = f"{path}[{index}]"
        data = node.get('data') if isinstance(node, dict) else None
        if not isinstance(data, dict):
            raise CommandError(f"{node_path}: missing 'data'")

        title = data.get('title')
        if not isinstance(title, str) or not title.strip():
            raise CommandError(f"{node_path}: title must not be blank")

        try:
            OptionsEditor.validate_mapping(data.get('options', {}))
        except serializers.ValidationError as e:
            raise CommandError(f"{node_path}: invalid options {e.detail}")

        validate_bulk(node.get('children', []), node_path)


class Command(BaseCommand):
    help = 'Import menu trees from a JSON file produced by export_menu'

    def add_arguments(self, parser):
        parser.add_argument('path')

    def handle(self, *args, **options):
        try:
            with open(options['path'], encoding='utf-8') as fp:
                bulk = json.load(fp)
        except (OSError, ValueError) as e:
            raise CommandError(f"Cannot read {options['path']}: {e}")

        validate_bulk(bulk)

        with transaction.atomic():
            added = MenuItem.load_bulk(bulk, parent=None, keep_ids=False)

        self.stdout.write(self.style.SUCCESS(f"Imported {len(added)} menu item(s)"))
